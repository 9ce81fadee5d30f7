"""Shared test fixtures."""

from pathlib import Path

import pytest

from nexus.models import Developer, Priority, Task, TaskType
from nexus.service import TrackerService
from nexus.stores.json_file import JsonFileStore


def make_task(task_id: str = "INC001", **fields) -> Task:
    defaults = {
        "summary": "VPN drops every hour",
        "status": "Novo",
        "created_at": "2024-01-10 09:00:00",
        "requester": "Maria Lima",
        "type": TaskType.INCIDENT,
        "priority": Priority.MODERATE,
    }
    return Task(id=task_id, **{**defaults, **fields})


@pytest.fixture
def incident() -> Task:
    return make_task(
        "INC001",
        assignee="Ana Silva",
        category="Rede",
        subcategory="VPN",
        start_date="2024-01-11",
        end_date="2024-01-15",
        estimated_time="8h",
        actual_time="2h 30m",
        blocker="Waiting on the network team",
    )


@pytest.fixture
def automation() -> Task:
    return make_task(
        "RITM002",
        type=TaskType.NEW_AUTOMATION,
        summary="Robot for invoice reconciliation",
        status="Em Progresso",
        assignee="Carlos Souza",
        automation_name="BOT_NF_RECON",
        management_area="Financeiro",
        fte_value=1.5,
    )


@pytest.fixture
def roster() -> list[Developer]:
    return [
        Developer(id="dev-1", name="Ana Silva"),
        Developer(id="dev-2", name="Carlos Souza", email="carlos@example.com"),
    ]


@pytest.fixture
def store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "workspace")


@pytest.fixture
def service(store: JsonFileStore) -> TrackerService:
    return TrackerService(store, acting_user="Beatriz Costa")
