"""Tests for nexus.history."""

import pytest

from nexus.history import (
    SIMPLE_TEXT_FIELDS,
    SYSTEM_USER,
    UNASSIGNED_LABEL,
    append_history,
    new_entry,
    record_changes,
    system_entry,
)
from nexus.models import Priority, ProjectData, Task, TaskType


def _edit(task: Task, **changes) -> Task:
    return task.model_copy(update=changes)


class TestRecordChanges:
    def test_identical_produces_nothing(self, incident: Task) -> None:
        assert record_changes(incident, incident, "Ana") == []

    def test_status_only(self, incident: Task) -> None:
        entries = record_changes(incident, _edit(incident, status="Em Progresso"), "Ana")
        assert len(entries) == 1
        assert "'Novo'" in entries[0].action
        assert "'Em Progresso'" in entries[0].action
        assert entries[0].user == "Ana"

    def test_priority_only(self, incident: Task) -> None:
        entries = record_changes(incident, _edit(incident, priority=Priority.CRITICAL), "Ana")
        assert len(entries) == 1
        assert "1 - Crítica" in entries[0].action

    def test_assignee_renders_unassigned(self, incident: Task) -> None:
        entries = record_changes(incident, _edit(incident, assignee=None), "Ana")
        assert len(entries) == 1
        assert "Ana Silva" in entries[0].action
        assert UNASSIGNED_LABEL in entries[0].action

    def test_phase_change_is_generic(self, incident: Task) -> None:
        before = _edit(incident, project_data=ProjectData(current_phase_id="discovery"))
        after = _edit(incident, project_data=ProjectData(current_phase_id="build"))
        entries = record_changes(before, after, "Ana")
        assert len(entries) == 1
        assert "discovery" not in entries[0].action
        assert "build" not in entries[0].action

    def test_phase_status_alone_is_not_a_phase_change(self, incident: Task) -> None:
        before = _edit(incident, project_data=ProjectData(current_phase_id="build", phase_status="a"))
        after = _edit(incident, project_data=ProjectData(current_phase_id="build", phase_status="b"))
        assert record_changes(before, after, "Ana") == []

    def test_blocker_change(self, incident: Task) -> None:
        entries = record_changes(incident, _edit(incident, blocker=None), "Ana")
        assert len(entries) == 1

    def test_summary_only_gives_one_generic_entry(self, incident: Task) -> None:
        entries = record_changes(incident, _edit(incident, summary="VPN drops every 30 minutes"), "Ana")
        assert len(entries) == 1

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("requester", "Other"),
            ("estimated_time", "16h"),
            ("actual_time", "3h"),
            ("start_date", "2024-01-12"),
            ("end_date", "2024-01-20"),
            ("category", "Infra"),
            ("subcategory", "Wi-Fi"),
            ("type", TaskType.IMPROVEMENT),
            ("project_path", r"\\fs01\rpa\vpn"),
            ("automation_name", "BOT_VPN"),
            ("management_area", "TI"),
            ("fte_value", 0.5),
        ],
    )
    def test_each_simple_field_is_caught(self, incident: Task, field: str, value: object) -> None:
        assert field in SIMPLE_TEXT_FIELDS
        assert len(record_changes(incident, _edit(incident, **{field: value}), "Ana")) == 1

    def test_many_simple_fields_still_one_entry(self, incident: Task) -> None:
        after = _edit(incident, summary="x", requester="y", estimated_time="1h", end_date="2025-01-01")
        assert len(record_changes(incident, after, "Ana")) == 1

    def test_generic_suppressed_when_specific_fired(self, incident: Task) -> None:
        after = _edit(incident, status="Resolvido", summary="Closed out", estimated_time="10h")
        entries = record_changes(incident, after, "Ana")
        assert len(entries) == 1
        assert "Resolvido" in entries[0].action

    def test_several_specific_rules_each_fire(self, incident: Task) -> None:
        after = _edit(incident, status="Resolvido", priority=Priority.LOW, assignee="Carlos Souza", blocker="")
        assert len(record_changes(incident, after, "Ana")) == 4

    def test_entries_have_unique_ids(self, incident: Task) -> None:
        after = _edit(incident, status="Resolvido", priority=Priority.LOW)
        entries = record_changes(incident, after, "Ana")
        assert len({e.id for e in entries}) == 2


class TestEntries:
    def test_system_entry_uses_sentinel(self) -> None:
        assert system_entry("Robô registrado").user == SYSTEM_USER

    def test_new_entry_ids_unique(self) -> None:
        assert new_entry("Ana", "x").id != new_entry("Ana", "x").id

    def test_append_keeps_existing_order(self, incident: Task) -> None:
        first, second = new_entry("Ana", "first"), new_entry("Ana", "second")
        task = append_history(append_history(incident, [first]), [second])
        assert [e.action for e in task.history] == ["first", "second"]
        assert incident.history == []

    def test_append_nothing_returns_same_task(self, incident: Task) -> None:
        assert append_history(incident, []) is incident
