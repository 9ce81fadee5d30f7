"""Nexus CLI commands."""

import logging
from typing import Annotated, NoReturn

import tomlkit
import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.table import Table

from nexus.duration import format_duration, parse_duration
from nexus.errors import NexusError
from nexus.importer import parse_sources
from nexus.models import Priority, ProjectData, Task, TaskType
from nexus.normalizer import clean_assignee
from nexus.service import TrackerService
from nexus.settings import CONFIG_PATH, _list_profiles, get_settings
from nexus.stores.json_file import JsonFileStore
from nexus.workload import capacity, is_overloaded, suggest_assignee, workload

app = typer.Typer(help="nexus: ticket import, reconciliation and workload tracking", no_args_is_help=True)

WorkspaceOpt = Annotated[
    str | None,
    typer.Option("--workspace", "-w", help="Workspace profile from ~/.config/nexus/config.toml"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


# ---------------------------------------------------------------------------
# Service factory
# ---------------------------------------------------------------------------


def get_service(workspace: str | None = None) -> TrackerService:
    settings = get_settings(workspace=workspace)
    return TrackerService(JsonFileStore(settings.store_dir), acting_user=settings.acting_user)


def _fail(message: str) -> NoReturn:
    rprint(f"[red]{message}[/red]")
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------

_PRIORITY_STYLE = {
    Priority.CRITICAL: "bold red",
    Priority.HIGH: "dark_orange",
    Priority.MODERATE: "yellow",
    Priority.LOW: "green",
}


def _matches(task: Task, search: str) -> bool:
    needle = search.lower()
    return needle in task.summary.lower() or needle in task.id.lower() or needle in (task.requester or "").lower()


def render_task_table(tasks: list[Task], title: str = "Tasks") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Assignee")
    table.add_column("Est.")
    table.add_column("Summary")

    for task in tasks:
        style = _PRIORITY_STYLE[task.priority]
        table.add_row(
            task.id,
            task.type.value,
            task.status,
            f"[{style}]{task.priority.value}[/{style}]",
            task.assignee or "—",
            task.estimated_time or "—",
            task.summary,
        )
    return table


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("import")
def import_cmd(
    sources: Annotated[list[str], typer.Argument(help="Spreadsheet files (.xlsx/.csv) or http(s) export URLs")],
    task_type: Annotated[
        TaskType | None,
        typer.Option("--type", "-t", help="Ticket type for every row (inferred per row when omitted)"),
    ] = None,
    no_register: Annotated[
        bool, typer.Option("--no-register", help="Don't add unseen assignees to the developer roster")
    ] = False,
    workspace: WorkspaceOpt = None,
) -> None:
    """Import ticket exports and merge them into the workspace."""
    settings = get_settings(workspace=workspace)
    service = get_service(workspace)
    try:
        batch = parse_sources(sources, task_type, timeout=settings.http_timeout)
    except NexusError as exc:
        _fail(f"Import failed, nothing was saved: {exc}")

    try:
        result = service.import_batch(batch, register_developers=not no_register)
    except NexusError as exc:
        _fail(f"Import failed: {exc}")

    rprint(f"[green]✓[/green] {len(batch)} ticket(s) processed, {len(result.merged)} in workspace")
    if result.newly_discovered_assignees:
        verb = "Found" if no_register else "Registered"
        rprint(f"  {verb} new developer(s): {', '.join(result.newly_discovered_assignees)}")


@app.command("list-tasks")
def list_tasks(
    workspace: WorkspaceOpt = None,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a")] = None,
    status: Annotated[str | None, typer.Option("--status", "-s")] = None,
    task_type: Annotated[TaskType | None, typer.Option("--type", "-t")] = None,
    priority: Annotated[Priority | None, typer.Option("--priority", "-p")] = None,
    search: Annotated[str | None, typer.Option("--search", help="Match id, summary or requester")] = None,
) -> None:
    """List tasks, optionally filtered."""
    tasks = [
        t
        for t in get_service(workspace).tasks()
        if (assignee is None or t.assignee == assignee)
        and (status is None or t.status == status)
        and (task_type is None or t.type == task_type)
        and (priority is None or t.priority == priority)
        and (search is None or _matches(t, search))
    ]
    rprint(render_task_table(tasks))


@app.command("show-task")
def show_task(
    task_id: Annotated[str, typer.Argument(help="Ticket number")],
    workspace: WorkspaceOpt = None,
) -> None:
    """Show full details and history for a task."""
    try:
        task = get_service(workspace).get_task(task_id)
    except NexusError as exc:
        _fail(str(exc))

    table = Table(title=f"{task.id}: {task.summary}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Type", task.type.value)
    table.add_row("Status", task.status)
    table.add_row("Priority", task.priority.value)
    table.add_row("Assignee", task.assignee or "Unassigned")
    table.add_row("Requester", task.requester or "—")
    table.add_row("Category", " / ".join(filter(None, [task.category, task.subcategory])) or "—")
    table.add_row("Created", task.created_at)
    table.add_row("Start / End", f"{task.start_date or '—'} → {task.end_date or '—'}")
    table.add_row("Estimated / Actual", f"{task.estimated_time or '—'} / {task.actual_time or '—'}")
    if task.project_data:
        table.add_row("Phase", f"{task.project_data.current_phase_id} ({task.project_data.phase_status or '—'})")
    if task.blocker:
        table.add_row("Blocker", f"[yellow]{task.blocker}[/yellow]")
    rprint(table)

    if task.history:
        history = Table(title="History")
        history.add_column("When", style="dim")
        history.add_column("Who")
        history.add_column("What")
        for entry in reversed(task.history):
            history.add_row(entry.date, entry.user, entry.action)
        rprint(history)


@app.command("edit-task")
def edit_task(
    task_id: Annotated[str, typer.Argument(help="Ticket number")],
    workspace: WorkspaceOpt = None,
    status: Annotated[str | None, typer.Option("--status", "-s")] = None,
    priority: Annotated[Priority | None, typer.Option("--priority", "-p")] = None,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a")] = None,
    unassign: Annotated[bool, typer.Option("--unassign", help="Clear the assignee")] = False,
    summary: Annotated[str | None, typer.Option("--summary")] = None,
    estimated: Annotated[str | None, typer.Option("--estimated", help="e.g. 4h, 2h 30m")] = None,
    actual: Annotated[str | None, typer.Option("--actual")] = None,
    start: Annotated[str | None, typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[str | None, typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    blocker: Annotated[str | None, typer.Option("--blocker", help="Empty string clears it")] = None,
    phase: Annotated[str | None, typer.Option("--phase", help="Project phase id")] = None,
) -> None:
    """Edit locally owned or workflow fields of a task, recording history."""
    settings = get_settings(workspace=workspace)
    service = get_service(workspace)

    changes: dict[str, object] = {}
    for name, value in (
        ("status", status),
        ("priority", priority),
        ("summary", summary),
        ("estimated_time", estimated),
        ("actual_time", actual),
        ("start_date", start),
        ("end_date", end),
    ):
        if value is not None:
            changes[name] = value
    if assignee is not None:
        changes["assignee"] = clean_assignee(assignee)
    if unassign:
        changes["assignee"] = None
    if blocker is not None:
        changes["blocker"] = blocker or None

    if not changes and phase is None:
        _fail("Nothing to change. See --help for editable fields.")

    try:
        before = service.get_task(task_id)
        if phase is not None:
            current = before.project_data
            changes["project_data"] = (
                current.model_copy(update={"current_phase_id": phase}) if current else ProjectData(current_phase_id=phase)
            )
        new_assignee = changes.get("assignee")
        if new_assignee:
            pending = workload(new_assignee, service.tasks(), exclude_task_id=task_id)
            pending += parse_duration(estimated or before.estimated_time)
            if is_overloaded(pending, settings.overload_hours):
                rprint(
                    f"[yellow]Warning:[/yellow] {new_assignee} would carry {format_duration(pending)} "
                    f"of open work (limit {format_duration(settings.overload_hours)})"
                )
        after = service.update_task(task_id, **changes)
    except (NexusError, ValueError) as exc:
        _fail(str(exc))

    new_entries = after.history[len(before.history) :]
    rprint(f"[green]✓[/green] Updated {after.id}")
    for entry in new_entries:
        rprint(f"  {entry.action}")


@app.command("move-task")
def move_task(
    task_id: Annotated[str, typer.Argument(help="Ticket number")],
    workspace: WorkspaceOpt = None,
    to_done: Annotated[bool, typer.Option("--to-done", help="Move to the done column")] = False,
    assignee: Annotated[str | None, typer.Option("--assignee", "-a", help="Move to a developer's column")] = None,
    unassigned: Annotated[bool, typer.Option("--unassigned", help="Move to the unassigned column")] = False,
) -> None:
    """Board move: to the done column, a developer's column or the unassigned column."""
    name = clean_assignee(assignee) if assignee is not None else None
    if sum((to_done, name is not None, unassigned)) != 1:
        _fail("Give exactly one destination: --to-done, --assignee NAME or --unassigned.")
    try:
        task = get_service(workspace).move_task(task_id, to_done=to_done, assignee=name, unassigned=unassigned)
    except NexusError as exc:
        _fail(str(exc))
    rprint(f"[green]✓[/green] {task.id} → {task.status} ({task.assignee or 'unassigned'})")


@app.command("delete-task")
def delete_task(
    task_id: Annotated[str, typer.Argument(help="Ticket number")],
    workspace: WorkspaceOpt = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a task from the workspace."""
    if not yes and not typer.confirm(f"Delete {task_id}?", default=False):
        raise typer.Exit(0)
    try:
        get_service(workspace).delete_task(task_id)
    except NexusError as exc:
        _fail(str(exc))
    rprint(f"[green]✓[/green] Deleted {task_id}")


@app.command("workload")
def workload_cmd(
    name: Annotated[str, typer.Argument(help="Developer name")],
    workspace: WorkspaceOpt = None,
    exclude: Annotated[str | None, typer.Option("--exclude", help="Task id to leave out")] = None,
) -> None:
    """Show a developer's open estimated hours."""
    settings = get_settings(workspace=workspace)
    hours = workload(name, get_service(workspace).tasks(), exclude_task_id=exclude)
    if is_overloaded(hours, settings.overload_hours):
        rprint(f"[red]{name}: {format_duration(hours)} (over {format_duration(settings.overload_hours)})[/red]")
    else:
        rprint(f"{name}: {format_duration(hours)}")


@app.command("capacity")
def capacity_cmd(workspace: WorkspaceOpt = None) -> None:
    """Rank developers from least to most busy."""
    settings = get_settings(workspace=workspace)
    service = get_service(workspace)
    devs, tasks = service.developers(), service.tasks()

    table = Table(title="Capacity")
    table.add_column("#", style="dim")
    table.add_column("Developer", no_wrap=True)
    table.add_column("Open tasks", justify="right")
    table.add_column("Hours", justify="right")

    for rank, load in enumerate(capacity(devs, tasks), start=1):
        hours = format_duration(load.hours)
        if is_overloaded(load.hours, settings.overload_hours):
            hours = f"[red]{hours}[/red]"
        table.add_row(str(rank), load.name, str(load.open_tasks), hours)

    rprint(table)
    suggestion = suggest_assignee(devs, tasks)
    if suggestion:
        rprint(f"Suggested assignee: [bold green]{suggestion}[/bold green]")


@app.command("list-devs")
def list_devs(workspace: WorkspaceOpt = None) -> None:
    """List the developer roster."""
    table = Table(title="Developers")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Email")
    table.add_column("ID", style="dim")
    for dev in get_service(workspace).developers():
        table.add_row(dev.name, dev.email or "—", dev.id)
    rprint(table)


@app.command("add-dev")
def add_dev(
    name: Annotated[str, typer.Argument(help="Developer name, as it appears in ticket exports")],
    workspace: WorkspaceOpt = None,
    email: Annotated[str | None, typer.Option("--email", "-e")] = None,
) -> None:
    """Add a developer to the roster."""
    if get_service(workspace).add_developer(name.strip(), email) is None:
        rprint(f"[yellow]{name} is already on the roster.[/yellow]")
        return
    rprint(f"[green]✓[/green] Added {name}")


@app.command("remove-dev")
def remove_dev(
    name: Annotated[str, typer.Argument(help="Developer name")],
    workspace: WorkspaceOpt = None,
) -> None:
    """Remove a developer from the roster (their tasks keep the assignee name)."""
    if not get_service(workspace).remove_developer(name):
        _fail(f"{name} is not on the roster.")
    rprint(f"[green]✓[/green] Removed {name}")


@app.command("list-robots")
def list_robots(workspace: WorkspaceOpt = None) -> None:
    """List automations registered from concluded automation tickets."""
    table = Table(title="Robots")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Developer", no_wrap=True)
    table.add_column("Area")
    table.add_column("Ticket", style="dim")
    for robot in get_service(workspace).robots():
        table.add_row(robot.name, robot.status, robot.developer or "—", robot.area or "—", robot.ticket_number or "—")
    rprint(table)


@app.command("set-default")
def set_default(
    workspace: Annotated[str, typer.Argument(help="Workspace profile to set as default")],
) -> None:
    """Set the default workspace in ~/.config/nexus/config.toml."""
    if not CONFIG_PATH.exists():
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()
        doc.add("default_workspace", workspace)
        doc.add(workspace, tomlkit.table())
        CONFIG_PATH.write_text(tomlkit.dumps(doc))
        rprint(f'[green]✓[/green] Default workspace set to "{workspace}" in {CONFIG_PATH}')
        return

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if workspace not in profiles:
        _fail(f"Workspace '{workspace}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")

    doc["default_workspace"] = workspace
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default workspace set to "{workspace}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(workspace: WorkspaceOpt = None) -> None:
    """Show resolved configuration."""
    settings = get_settings(workspace=workspace)

    table = Table(title="Nexus Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("workspace", settings.workspace)
    table.add_row("default_workspace", settings.default_workspace or "[dim](not set)[/dim]")
    table.add_row("store_dir", str(settings.store_dir))
    table.add_row("acting_user", settings.acting_user)
    table.add_row("overload_hours", format_duration(settings.overload_hours))
    table.add_row("http_timeout", f"{settings.http_timeout:g}s")

    rprint(table)
