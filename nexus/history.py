"""Derive audit entries from a before/after pair of the same task."""

from datetime import datetime, timezone
from uuid import uuid4

from nexus.models import HistoryEntry, Task

SYSTEM_USER = "Sistema"
UNASSIGNED_LABEL = "Não atribuído"

# Edits to these only ever produce the generic catch-all entry.
SIMPLE_TEXT_FIELDS = (
    "summary",
    "requester",
    "estimated_time",
    "actual_time",
    "start_date",
    "end_date",
    "category",
    "subcategory",
    "type",
    "project_path",
    "automation_name",
    "management_area",
    "fte_value",
)


def new_entry(user: str, action: str) -> HistoryEntry:
    return HistoryEntry(
        id=uuid4().hex,
        date=datetime.now(timezone.utc).isoformat(),
        user=user,
        action=action,
    )


def system_entry(action: str) -> HistoryEntry:
    """Entry attributed to automation rather than a person."""
    return new_entry(SYSTEM_USER, action)


def _phase_id(task: Task) -> str | None:
    return task.project_data.current_phase_id if task.project_data else None


def record_changes(before: Task, after: Task, acting_user: str) -> list[HistoryEntry]:
    """Return the entries describing how `after` differs from `before`.

    Status, priority, assignee, phase and blocker changes each get their own
    entry. A single "details edited" entry covers the simple text fields, and
    only when none of the specific rules fired.
    """
    actions: list[str] = []

    if before.status != after.status:
        actions.append(f"Status alterado de '{before.status}' para '{after.status}'")
    if before.priority != after.priority:
        actions.append(f"Prioridade alterada de '{before.priority.value}' para '{after.priority.value}'")
    if before.assignee != after.assignee:
        old = before.assignee or UNASSIGNED_LABEL
        new = after.assignee or UNASSIGNED_LABEL
        actions.append(f"Responsável alterado de '{old}' para '{new}'")
    if _phase_id(before) != _phase_id(after):
        actions.append("Fase do projeto alterada")
    if (before.blocker or "") != (after.blocker or ""):
        actions.append("Bloqueio atualizado")

    if not actions and any(getattr(before, f) != getattr(after, f) for f in SIMPLE_TEXT_FIELDS):
        actions.append("Detalhes editados")

    return [new_entry(acting_user, action) for action in actions]


def append_history(task: Task, entries: list[HistoryEntry]) -> Task:
    """Return task with entries appended; existing entries are never touched."""
    if not entries:
        return task
    return task.model_copy(update={"history": [*task.history, *entries]})
