"""Map loosely-labelled spreadsheet rows onto canonical Task records.

Rows come from ticketing-system exports whose column names vary by locale and
by export template, so every field is looked up through an ordered alias list.
Nothing here raises: unknown vocabulary falls back to a fixed value and a row
without a ticket number gets a synthesized placeholder id.
"""

import json
import logging
import math
import random
import time
from collections.abc import Mapping
from datetime import datetime, timezone

from nexus.models import Priority, Task, TaskType

logger = logging.getLogger(__name__)

Row = Mapping[str, object]

ID_KEYS = ("Número", "Numero", "ID", "Number")
SUMMARY_KEYS = ("Descrição resumida", "Resumo", "Summary", "Short Description")
DESCRIPTION_KEYS = ("Descrição", "Descricao", "Description")
STATUS_KEYS = ("Estado", "State", "Status")
ASSIGNEE_KEYS = ("Atribuído a", "Atribuido a", "Assigned to", "Responsável")
CREATED_KEYS = ("Criação de", "Criação em", "Created", "Opened")
CATEGORY_KEYS = ("Categoria", "Category")
SUBCATEGORY_KEYS = ("Subcategoria", "Subcategory")
REQUESTER_KEYS = ("Criado por", "Solicitante", "Requester", "Caller")
PRIORITY_KEYS = ("Prioridade", "Priority")

DEFAULT_SUMMARY = "Sem descrição"
DEFAULT_STATUS = "Novo"
DEFAULT_REQUESTER = "Sistema"
EMPTY_ASSIGNEE = frozenset({"N/A", "-"})

# (priority, needles), checked in order; first hit wins
_PRIORITY_RULES = (
    (Priority.CRITICAL, ("1", "crítica", "critica")),
    (Priority.HIGH, ("2", "alta")),
    (Priority.MODERATE, ("3", "moderada")),
    (Priority.LOW, ("4", "baixa")),
)


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _text(value: object) -> str:
    # Spreadsheet readers hand back 12345.0 for numeric ticket columns.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def find_value(row: Row, keys: tuple[str, ...]) -> object | None:
    """Return the value of the first alias present in row (exact, then case-insensitive)."""
    lowered = {str(k).lower(): k for k in row}
    for key in keys:
        if key in row:
            return row[key]
        found = lowered.get(key.lower())
        if found is not None:
            return row[found]
    return None


def _field(row: Row, keys: tuple[str, ...], default: str | None = None) -> str | None:
    value = find_value(row, keys)
    if _is_blank(value):
        return default
    return _text(value)


def placeholder_id() -> str:
    """Synthesize an id for a row without one. Two calls never intentionally coincide."""
    return f"TASK-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def infer_type(row: Row) -> TaskType:
    """Classify by keyword anywhere in the row; improvement wins over automation."""
    text = json.dumps(dict(row), ensure_ascii=False, default=str).lower()
    if "melhoria" in text:
        return TaskType.IMPROVEMENT
    if "automação" in text or "rpa" in text:
        return TaskType.NEW_AUTOMATION
    return TaskType.INCIDENT


def normalize_priority(raw: object) -> Priority:
    text = _text(raw).lower() if not _is_blank(raw) else ""
    for priority, needles in _PRIORITY_RULES:
        if any(needle in text for needle in needles):
            return priority
    return Priority.LOW


def clean_assignee(raw: object) -> str | None:
    if _is_blank(raw):
        return None
    name = _text(raw).strip()
    if name in EMPTY_ASSIGNEE:
        return None
    return name


def normalize(row: Row, type_hint: TaskType | None = None) -> Task:
    """Build a canonical Task from one raw row.

    Locally owned fields (dates, estimated/actual time) are always left unset.
    """
    task_id = _field(row, ID_KEYS)
    if task_id is None:
        task_id = placeholder_id()
        logger.debug("Row without ticket number, assigned placeholder %s", task_id)

    return Task(
        id=task_id.strip(),
        type=type_hint or infer_type(row),
        summary=_field(row, SUMMARY_KEYS, DEFAULT_SUMMARY),
        description=_field(row, DESCRIPTION_KEYS),
        requester=_field(row, REQUESTER_KEYS, DEFAULT_REQUESTER),
        assignee=clean_assignee(find_value(row, ASSIGNEE_KEYS)),
        priority=normalize_priority(find_value(row, PRIORITY_KEYS)),
        status=_field(row, STATUS_KEYS, DEFAULT_STATUS).strip(),
        created_at=_field(row, CREATED_KEYS) or datetime.now(timezone.utc).isoformat(),
        category=_field(row, CATEGORY_KEYS),
        subcategory=_field(row, SUBCATEGORY_KEYS, ""),
    )
