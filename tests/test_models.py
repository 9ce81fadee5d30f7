"""Tests for nexus.models."""

import pytest

from nexus.models import Developer, HistoryEntry, Priority, ProjectData, Task, TaskType


def test_task_frozen(incident: Task) -> None:
    with pytest.raises(Exception):  # ValidationError or TypeError depending on pydantic version
        incident.status = "changed"  # type: ignore[misc]


def test_task_defaults() -> None:
    task = Task(id="INC9", summary="Printer jam", status="Novo", created_at="2024-01-01")
    assert task.type == TaskType.INCIDENT
    assert task.priority == Priority.LOW
    assert task.assignee is None
    assert task.start_date is None
    assert task.estimated_time is None
    assert task.history == []


def test_dumps_camel_case_aliases(incident: Task) -> None:
    data = incident.model_dump(mode="json", by_alias=True)
    assert data["startDate"] == "2024-01-11"
    assert data["estimatedTime"] == "8h"
    assert data["createdAt"] == "2024-01-10 09:00:00"
    assert data["type"] == "Incidente"
    assert data["priority"] == "3 - Moderada"


def test_loads_browser_store_record() -> None:
    record = {
        "id": "INC0042",
        "type": "Nova Automação",
        "summary": "Bot",
        "assignee": None,
        "priority": "2 - Alta",
        "status": "Backlog",
        "createdAt": "2024-02-01",
        "actualTime": "1h",
        "projectData": {"currentPhaseId": "dev", "phaseStatus": "Em andamento", "completedActivities": ["Kickoff"]},
        "history": [{"id": "h1", "date": "2024-02-02T10:00:00Z", "user": "Ana", "action": "Criado"}],
    }
    task = Task.model_validate(record)
    assert task.type == TaskType.NEW_AUTOMATION
    assert task.priority == Priority.HIGH
    assert task.actual_time == "1h"
    assert task.project_data == ProjectData(
        current_phase_id="dev", phase_status="Em andamento", completed_activities=["Kickoff"]
    )
    assert task.history[0].user == "Ana"


def test_is_closed() -> None:
    for status in ("Concluído", "Resolvido", "Fechado"):
        assert Task(id="1", summary="s", status=status, created_at="x").is_closed
    assert not Task(id="1", summary="s", status="Aguardando", created_at="x").is_closed


def test_history_entry_frozen() -> None:
    entry = HistoryEntry(id="h1", date="2024-01-01T00:00:00Z", user="Ana", action="Criado")
    with pytest.raises(Exception):
        entry.action = "changed"  # type: ignore[misc]


def test_developer_email_optional() -> None:
    assert Developer(id="dev-1", name="Ana").email is None
