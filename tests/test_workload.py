"""Tests for nexus.workload."""

from nexus.models import Developer, Task
from nexus.workload import capacity, is_overloaded, open_tasks, suggest_assignee, workload


def _task(task_id: str, assignee: str | None, estimated: str | None, status: str = "Em Progresso") -> Task:
    return Task(
        id=task_id,
        summary=task_id,
        status=status,
        created_at="2024-01-01",
        assignee=assignee,
        estimated_time=estimated,
    )


_TASKS = [
    _task("T1", "Ana", "4h"),
    _task("T2", "Ana", "4h"),
    _task("T3", "Ana", "100h", status="Concluído"),
    _task("T4", "Carlos", "2h 30m"),
    _task("T5", None, "50h"),
]


class TestWorkload:
    def test_sums_open_tasks(self) -> None:
        assert workload("Ana", _TASKS) == 8

    def test_exclude_task(self) -> None:
        assert workload("Ana", _TASKS, exclude_task_id="T1") == 4

    def test_every_closed_status_excluded(self) -> None:
        tasks = [_task(str(i), "Ana", "1h", status=s) for i, s in enumerate(["Resolvido", "Fechado", "Concluído"])]
        assert workload("Ana", tasks) == 0

    def test_unknown_developer_is_zero(self) -> None:
        assert workload("Nobody", _TASKS) == 0

    def test_unparseable_estimates_count_zero(self) -> None:
        assert workload("Ana", [_task("X", "Ana", "soon"), _task("Y", "Ana", None), _task("Z", "Ana", "1h")]) == 1

    def test_open_tasks_lists_matches(self) -> None:
        assert [t.id for t in open_tasks("Ana", _TASKS)] == ["T1", "T2"]


def test_is_overloaded_is_strictly_above_threshold() -> None:
    assert not is_overloaded(40, 40)
    assert is_overloaded(40.5, 40)


class TestCapacity:
    def test_ranks_least_busy_first(self) -> None:
        devs = [Developer(id="1", name="Ana"), Developer(id="2", name="Carlos"), Developer(id="3", name="Beatriz")]
        ranking = capacity(devs, _TASKS)
        assert [load.name for load in ranking] == ["Beatriz", "Carlos", "Ana"]
        assert ranking[1].open_tasks == 1
        assert ranking[1].hours == 2.5
        assert ranking[2].hours == 8

    def test_suggest_assignee(self) -> None:
        devs = [Developer(id="1", name="Ana"), Developer(id="2", name="Carlos")]
        assert suggest_assignee(devs, _TASKS) == "Carlos"

    def test_suggest_with_empty_roster(self) -> None:
        assert suggest_assignee([], _TASKS) is None
