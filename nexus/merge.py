"""Reconcile an imported batch with the persisted task collection.

Field ownership on an id that already exists:

- external-authoritative: always taken from the import
- external-with-fallback: taken from the import only when non-empty
- assignee: taken from the import only when non-empty, never cleared
- locally owned: always kept from the existing record
- anything else (history, blocker, board position, ...) is carried over

Merging is a pure function; persisting the result is the caller's job.
"""

import logging
from collections.abc import Iterable

from nexus.models import MergeResult, Task
from nexus.normalizer import placeholder_id

logger = logging.getLogger(__name__)

EXTERNAL_FIELDS = ("summary", "type", "status", "subcategory", "priority", "created_at", "requester")
FALLBACK_FIELDS = ("category", "automation_name")
LOCAL_FIELDS = (
    "start_date",
    "end_date",
    "estimated_time",
    "actual_time",
    "project_data",
    "project_path",
)


def merge_task(existing: Task, incoming: Task) -> Task:
    """Apply the ownership policy to one overlapping id."""
    update: dict[str, object] = {name: getattr(incoming, name) for name in EXTERNAL_FIELDS}
    for name in FALLBACK_FIELDS:
        value = getattr(incoming, name)
        if value:
            update[name] = value
    if incoming.assignee:
        update["assignee"] = incoming.assignee
    # LOCAL_FIELDS and everything unlisted come from `existing` untouched.
    return existing.model_copy(update=update)


def discover_assignees(incoming: Iterable[Task], known_developers: Iterable[str]) -> list[str]:
    """Assignee names in the batch that are not on the roster, first-seen order."""
    known = set(known_developers)
    found: list[str] = []
    for task in incoming:
        name = task.assignee
        if name and name not in known:
            known.add(name)
            found.append(name)
    return found


def merge_batch(
    existing: Iterable[Task],
    incoming: Iterable[Task],
    known_developers: Iterable[str] = (),
) -> MergeResult:
    """Merge incoming into existing, returning the full new collection.

    Existing tasks keep their order; unseen ids are appended in batch order.
    Tasks missing from the batch pass through unchanged; nothing is deleted.
    """
    by_id: dict[str, Task] = {task.id: task for task in existing}
    batch = list(incoming)
    inserted = updated = 0

    for task in batch:
        if not task.id:
            task = task.model_copy(update={"id": placeholder_id()})
        current = by_id.get(task.id)
        if current is None:
            by_id[task.id] = task
            inserted += 1
        else:
            by_id[task.id] = merge_task(current, task)
            updated += 1

    logger.info("Merged batch of %d: %d new, %d updated", len(batch), inserted, updated)
    return MergeResult(
        merged=list(by_id.values()),
        newly_discovered_assignees=discover_assignees(batch, known_developers),
    )
