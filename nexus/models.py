"""Shared pydantic models: the contract between the core, the stores and main.py."""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TaskType(str, Enum):
    INCIDENT = "Incidente"
    IMPROVEMENT = "Melhoria"
    NEW_AUTOMATION = "Nova Automação"


class Priority(str, Enum):
    # Declaration order is severity order.
    CRITICAL = "1 - Crítica"
    HIGH = "2 - Alta"
    MODERATE = "3 - Moderada"
    LOW = "4 - Baixa"


# Advisory vocabulary only; status is never validated against it.
STATUSES = (
    "Novo",
    "Pendente",
    "Em Atendimento",
    "Em Progresso",
    "Resolvido",
    "Fechado",
    "Aguardando",
    "Concluído",
    "Backlog",
)
CLOSED_STATUSES = frozenset({"Concluído", "Resolvido", "Fechado"})


class _Record(BaseModel):
    # camelCase on disk keeps stores written by the browser dashboard readable.
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class HistoryEntry(_Record):
    id: str
    date: str  # ISO-8601
    user: str
    action: str


class ProjectData(_Record):
    current_phase_id: str
    phase_status: str = ""
    completed_activities: list[str] = []


class Task(_Record):
    id: str  # external ticket number
    type: TaskType = TaskType.INCIDENT
    summary: str
    description: str | None = None
    requester: str | None = None
    assignee: str | None = None
    priority: Priority = Priority.LOW
    status: str
    created_at: str
    category: str | None = None
    subcategory: str | None = None

    # Locally owned, never supplied by an import
    start_date: str | None = None
    end_date: str | None = None
    estimated_time: str | None = None
    actual_time: str | None = None
    manual_fields: list[str] | None = None

    project_path: str | None = None
    automation_name: str | None = None
    fte_value: float | None = None
    management_area: str | None = None
    blocker: str | None = None
    board_position: int | None = None
    project_data: ProjectData | None = None
    doc_statuses: dict[str, str] | None = None

    history: list[HistoryEntry] = []

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES


class Developer(_Record):
    id: str
    name: str  # join key for Task.assignee
    email: str | None = None


class Robot(_Record):
    """Automation registry entry, created when an automation ticket concludes."""

    id: str
    name: str
    folder: str = ""
    status: str = "ATIVO"
    developer: str = ""
    owners: str = ""
    area: str = ""
    fte: float | None = None
    ticket_number: str | None = None


class MergeResult(BaseModel):
    """Returned by merge_batch: the new collection plus roster candidates."""

    model_config = ConfigDict(frozen=True)

    merged: list[Task]
    newly_discovered_assignees: list[str] = []


class DeveloperLoad(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    open_tasks: int
    hours: float
