"""TrackerService: the single owner of the persisted collections.

Every mutation takes the lock, reads the full collection from the store,
computes the full new collection and saves it with one call.
"""

import logging
import threading
import uuid
from collections.abc import Callable, Iterable
from typing import Any

from nexus.errors import TaskNotFoundError
from nexus.history import append_history, record_changes, system_entry
from nexus.merge import merge_batch
from nexus.models import CLOSED_STATUSES, Developer, MergeResult, Robot, Task, TaskType
from nexus.stores.base import TaskStore

logger = logging.getLogger(__name__)

DONE_STATUS = "Resolvido"
REOPENED_STATUS = "Em Atendimento"


def new_developer_id() -> str:
    return f"dev-{uuid.uuid4().hex[:12]}"


def with_changes(task: Task, changes: dict[str, Any]) -> Task:
    """Return a validated copy of task with changes applied (field names, not aliases)."""
    for name in ("id", "history"):
        if name in changes:
            raise ValueError(f"Task {name} cannot be edited directly")
    unknown = sorted(set(changes) - set(Task.model_fields))
    if unknown:
        raise ValueError(f"Unknown task field(s): {', '.join(unknown)}")
    return Task.model_validate({**task.model_dump(), **changes})


class TrackerService:
    def __init__(self, store: TaskStore, acting_user: str) -> None:
        self._store = store
        self._user = acting_user
        self._lock = threading.RLock()

    @property
    def store(self) -> TaskStore:
        return self._store

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def tasks(self) -> list[Task]:
        return self._store.load()

    def get_task(self, task_id: str) -> Task:
        for task in self._store.load():
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def developers(self) -> list[Developer]:
        return self._store.load_developers()

    def robots(self) -> list[Robot]:
        return self._store.load_robots()

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_batch(self, incoming: list[Task], register_developers: bool = True) -> MergeResult:
        """Merge a normalized batch, save once, then register unseen assignees.

        Tasks that already existed get history entries for whatever the batch
        changed, so importing the same batch twice records nothing new.
        """
        with self._lock:
            roster = self._store.load_developers()
            current = self._store.load()
            result = merge_batch(current, incoming, (d.name for d in roster))

            previous = {t.id: t for t in current}
            merged = [
                append_history(t, record_changes(previous[t.id], t, self._user)) if t.id in previous else t
                for t in result.merged
            ]
            result = result.model_copy(update={"merged": merged})
            self._store.save(merged)

            if register_developers and result.newly_discovered_assignees:
                added = [Developer(id=new_developer_id(), name=n) for n in result.newly_discovered_assignees]
                self._store.save_developers([*roster, *added])
                logger.info("Registered %d developer(s) from import", len(added))
        return result

    # ------------------------------------------------------------------
    # Task mutations
    # ------------------------------------------------------------------

    def update_task(self, task_id: str, **changes: Any) -> Task:
        """Apply field changes to one task, recording history for the acting user."""
        return self._mutate(task_id, lambda task: with_changes(task, changes))

    def move_task(
        self,
        task_id: str,
        to_done: bool = False,
        assignee: str | None = None,
        unassigned: bool = False,
    ) -> Task:
        """Kanban move: into the done column, onto a developer, or onto the unassigned column.

        Exactly one destination must be given.
        """
        if sum((to_done, bool(assignee), unassigned)) != 1:
            raise ValueError("Choose exactly one destination: done, a developer or the unassigned column")
        if unassigned:
            assignee = None

        def move(task: Task) -> Task:
            if to_done:
                return task.model_copy(update={"status": DONE_STATUS})
            status = REOPENED_STATUS if task.status in ("Resolvido", "Concluído") else task.status
            return task.model_copy(update={"status": status, "assignee": assignee})

        return self._mutate(task_id, move)

    def bulk_update(self, task_ids: Iterable[str], **changes: Any) -> list[Task]:
        wanted = set(task_ids)
        with self._lock:
            tasks = self._store.load()
            missing = wanted - {t.id for t in tasks}
            if missing:
                raise TaskNotFoundError(sorted(missing)[0])
            robots = self._store.load_robots()
            known = len(robots)
            updated: list[Task] = []
            result = []
            for task in tasks:
                if task.id in wanted:
                    task = self._apply(task, with_changes(task, changes), robots)
                    updated.append(task)
                result.append(task)
            self._store.save(result)
            self._save_new_robots(robots, known)
        return updated

    def delete_task(self, task_id: str) -> None:
        with self._lock:
            tasks = self._store.load()
            remaining = [t for t in tasks if t.id != task_id]
            if len(remaining) == len(tasks):
                raise TaskNotFoundError(task_id)
            self._store.save(remaining)

    def _mutate(self, task_id: str, change: Callable[[Task], Task]) -> Task:
        with self._lock:
            tasks = self._store.load()
            for index, task in enumerate(tasks):
                if task.id == task_id:
                    break
            else:
                raise TaskNotFoundError(task_id)
            robots = self._store.load_robots()
            known = len(robots)
            after = self._apply(task, change(task), robots)
            tasks[index] = after
            self._store.save(tasks)
            self._save_new_robots(robots, known)
        return after

    def _apply(self, before: Task, after: Task, robots: list[Robot]) -> Task:
        after = append_history(after, record_changes(before, after, self._user))
        if after.type == TaskType.NEW_AUTOMATION and not before.is_closed and after.status in CLOSED_STATUSES:
            after = self._register_robot(after, robots)
        return after

    def _save_new_robots(self, robots: list[Robot], known: int) -> None:
        # Only after the tasks are saved, so a failed save leaves no orphan robot.
        if len(robots) == known:
            return
        self._store.save_robots(robots)
        for robot in robots[known:]:
            logger.info("Registered robot %s from ticket %s", robot.name, robot.ticket_number)

    def _register_robot(self, task: Task, robots: list[Robot]) -> Task:
        """Append a robot for a concluded automation ticket to robots (not yet saved)."""
        if any(r.ticket_number == task.id for r in robots):
            return task
        robot = Robot(
            id=f"bot-{uuid.uuid4().hex[:12]}",
            name=task.automation_name or task.summary,
            developer=task.assignee or "",
            area=task.management_area or "",
            fte=task.fte_value,
            ticket_number=task.id,
        )
        robots.append(robot)
        return append_history(task, [system_entry(f"Robô '{robot.name}' registrado automaticamente")])

    # ------------------------------------------------------------------
    # Developer roster
    # ------------------------------------------------------------------

    def add_developer(self, name: str, email: str | None = None) -> Developer | None:
        """Add a developer unless the name is already on the roster."""
        with self._lock:
            roster = self._store.load_developers()
            if any(d.name == name for d in roster):
                return None
            dev = Developer(id=new_developer_id(), name=name, email=email)
            self._store.save_developers([*roster, dev])
        return dev

    def remove_developer(self, name: str) -> bool:
        with self._lock:
            roster = self._store.load_developers()
            remaining = [d for d in roster if d.name != name]
            if len(remaining) == len(roster):
                return False
            self._store.save_developers(remaining)
        return True
