"""Open-task load per developer, for overload warnings and assignment suggestions."""

from collections.abc import Iterable

from nexus.duration import parse_duration
from nexus.models import Developer, DeveloperLoad, Task


def open_tasks(developer_name: str, tasks: Iterable[Task], exclude_task_id: str | None = None) -> list[Task]:
    return [
        t
        for t in tasks
        if t.assignee == developer_name and not t.is_closed and (exclude_task_id is None or t.id != exclude_task_id)
    ]


def workload(developer_name: str, tasks: Iterable[Task], exclude_task_id: str | None = None) -> float:
    """Sum of estimated hours over the developer's open tasks.

    exclude_task_id drops the task being reassigned so it doesn't count against itself.
    """
    return sum((parse_duration(t.estimated_time) for t in open_tasks(developer_name, tasks, exclude_task_id)), 0.0)


def is_overloaded(hours: float, threshold: float) -> bool:
    return hours > threshold


def capacity(developers: Iterable[Developer], tasks: Iterable[Task]) -> list[DeveloperLoad]:
    """Rank the roster least-busy first (open task count, then hours)."""
    task_list = list(tasks)
    loads = []
    for dev in developers:
        mine = open_tasks(dev.name, task_list)
        loads.append(
            DeveloperLoad(
                name=dev.name,
                open_tasks=len(mine),
                hours=sum((parse_duration(t.estimated_time) for t in mine), 0.0),
            )
        )
    return sorted(loads, key=lambda load: (load.open_tasks, load.hours))


def suggest_assignee(developers: Iterable[Developer], tasks: Iterable[Task]) -> str | None:
    ranking = capacity(developers, tasks)
    return ranking[0].name if ranking else None
