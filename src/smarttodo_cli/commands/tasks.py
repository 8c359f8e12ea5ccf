"""Task commands."""

import asyncio
from datetime import datetime

import typer
from rich.console import Group
from rich.live import Live
from rich.text import Text

from smarttodo_cli.exceptions import RemoteError, TaskValidationError
from smarttodo_cli.models import Priority, SortKey, StatusFilter, TaskUpdate
from smarttodo_cli.services.runtime import TodoApp, open_app
from smarttodo_cli.services.task_filters import filter_tasks, sort_tasks, summarize
from smarttodo_cli.services.task_sync import TaskSynchronizer
from smarttodo_cli.utils.task_helpers import resolve_task_id
from smarttodo_cli.utils.typer_helpers import SuggestingGroup
from smarttodo_cli.utils.ui.console import get_console
from smarttodo_cli.utils.ui.formatters import (
    build_task_table,
    format_info,
    format_output,
    format_success,
    format_summary,
    format_warning,
)

from .decorators import command_wrapper

app = typer.Typer(cls=SuggestingGroup, help="Task management commands")
console = get_console()

DATE_FORMATS = ["%Y-%m-%d"]


def _loaded(todo: TodoApp) -> TaskSynchronizer:
    """The signed-in synchronizer; fails if its tasks could not be loaded."""
    synchronizer = todo.synchronizer
    if synchronizer.last_error is not None:
        raise RemoteError(f"Could not load tasks: {synchronizer.last_error}")
    return synchronizer


@app.command("list")
@command_wrapper
async def list_tasks(
    status: StatusFilter = typer.Option(
        StatusFilter.ALL, "--filter", "-f", help="Completion status to show"
    ),
    search: str = typer.Option("", "--search", "-s", help="Search title and description"),
    sort: SortKey = typer.Option(SortKey.CREATED, "--sort", help="Sort order"),
    full: bool = typer.Option(False, "--full", help="Show full descriptions"),
    output: str | None = typer.Option(
        None, "--output", "-o", help="Output format (pretty, table, json, yaml, quiet)"
    ),
    compact: bool | None = typer.Option(
        None, "--compact/--no-compact", help="One line per task"
    ),
) -> None:
    """List tasks."""
    async with open_app() as todo:
        synchronizer = _loaded(todo)
        output_config = todo.config_service.config.output
        all_tasks = synchronizer.task_list()

    tasks = sort_tasks(filter_tasks(all_tasks, status, search), sort)
    format_output(
        tasks,
        output or output_config.format,
        compact=output_config.compact if compact is None else compact,
        full=full,
        all_task_ids=[task.id for task in all_tasks],
    )


@app.command("add")
@command_wrapper
async def add_task(
    title: str = typer.Argument(..., help="Task title"),
    description: str = typer.Option("", "--description", "-d", help="Task description"),
    priority: Priority = typer.Option(Priority.MEDIUM, "--priority", "-p", help="Priority"),
    deadline: datetime | None = typer.Option(
        None, "--deadline", formats=DATE_FORMATS, help="Deadline (YYYY-MM-DD)"
    ),
) -> None:
    """Add a new task."""
    async with open_app() as todo:
        synchronizer = _loaded(todo)
        task = await synchronizer.create(
            title,
            description=description,
            priority=priority,
            deadline=deadline.date() if deadline else None,
        )

    format_success(f"Task created: {task.title} (#{task.id[-6:]})")


@app.command("edit")
@command_wrapper
async def edit_task(
    task_id: str = typer.Argument(..., help="Task ID or suffix"),
    title: str | None = typer.Option(None, "--title", "-t", help="New title"),
    description: str | None = typer.Option(
        None, "--description", "-d", help="New description"
    ),
    priority: Priority | None = typer.Option(None, "--priority", "-p", help="New priority"),
    deadline: datetime | None = typer.Option(
        None, "--deadline", formats=DATE_FORMATS, help="New deadline (YYYY-MM-DD)"
    ),
    clear_deadline: bool = typer.Option(False, "--clear-deadline", help="Remove the deadline"),
) -> None:
    """Edit a task."""
    if deadline is not None and clear_deadline:
        raise TaskValidationError("--deadline and --clear-deadline are mutually exclusive")

    changes = {}
    if title is not None:
        changes["title"] = title
    if description is not None:
        changes["description"] = description
    if priority is not None:
        changes["priority"] = priority
    if deadline is not None:
        changes["deadline"] = deadline.date()
    if clear_deadline:
        changes["deadline"] = None
    if not changes:
        raise TaskValidationError("Nothing to change. Pass at least one option.")

    async with open_app() as todo:
        synchronizer = _loaded(todo)
        resolved_id = resolve_task_id(synchronizer, task_id)
        task = await synchronizer.update(resolved_id, TaskUpdate(**changes))

    format_success(f"Task updated: {task.title}")


async def _set_completed(task_id: str, completed: bool) -> None:
    async with open_app() as todo:
        synchronizer = _loaded(todo)
        resolved_id = resolve_task_id(synchronizer, task_id)
        task = synchronizer.get(resolved_id)
        if task.completed == completed:
            format_info(
                f"Task already {'completed' if completed else 'active'}: {task.title}"
            )
            return
        task = await synchronizer.update(resolved_id, TaskUpdate(completed=completed))

    format_success(f"Task {'completed' if completed else 'reopened'}: {task.title}")


@app.command("done")
@command_wrapper
async def complete_task(
    task_id: str = typer.Argument(..., help="Task ID or suffix"),
) -> None:
    """Mark a task as completed."""
    await _set_completed(task_id, True)


@app.command("undo")
@command_wrapper
async def reopen_task(
    task_id: str = typer.Argument(..., help="Task ID or suffix"),
) -> None:
    """Mark a completed task as active again."""
    await _set_completed(task_id, False)


@app.command("toggle")
@command_wrapper
async def toggle_task(
    task_id: str = typer.Argument(..., help="Task ID or suffix"),
) -> None:
    """Flip a task between active and completed."""
    async with open_app() as todo:
        synchronizer = _loaded(todo)
        task = await synchronizer.toggle(resolve_task_id(synchronizer, task_id))

    format_success(f"Task {'completed' if task.completed else 'reopened'}: {task.title}")


@app.command("delete")
@command_wrapper
async def delete_task(
    task_id: str = typer.Argument(..., help="Task ID or suffix"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a task."""
    async with open_app() as todo:
        synchronizer = _loaded(todo)
        resolved_id = resolve_task_id(synchronizer, task_id)
        task = synchronizer.get(resolved_id)

        if not force:
            confirm = typer.confirm(f"Delete task '{task.title}'?")
            if not confirm:
                format_info("Cancelled")
                raise typer.Exit(0)

        await synchronizer.delete(resolved_id)

    format_success(f"Task deleted: {task.title}")


@app.command("complete-all")
@command_wrapper
async def complete_all() -> None:
    """Mark every active task as completed."""
    async with open_app() as todo:
        count = await _loaded(todo).complete_all()

    if count == 0:
        format_info("No active tasks")
        return
    format_success(f"Marked {count} task{'s' if count != 1 else ''} as completed")


@app.command("stats")
@command_wrapper
async def stats() -> None:
    """Show task counts."""
    async with open_app() as todo:
        summary = summarize(_loaded(todo).task_list())

    format_summary(summary)


@app.command("refresh")
@command_wrapper
async def refresh() -> None:
    """Reload tasks from the backend."""
    async with open_app() as todo:
        tasks = await todo.synchronizer.load_all()

    format_success(f"Loaded {len(tasks)} task{'s' if len(tasks) != 1 else ''}")


def _watch_view(
    synchronizer: TaskSynchronizer, status: StatusFilter, search: str, full: bool
) -> Group:
    all_tasks = synchronizer.task_list()
    tasks = sort_tasks(filter_tasks(all_tasks, status, search))
    summary = summarize(all_tasks)

    header = Text()
    header.append("📝 Tasks ", style="bold cyan")
    header.append(
        f"{summary.active} active, {summary.completed} done, {summary.total} total",
        style="dim",
    )
    if synchronizer.loading:
        header.append("  syncing...", style="yellow")

    parts = [header]
    if synchronizer.last_error:
        parts.append(Text(f"⚠ {synchronizer.last_error}", style="red"))
    if tasks:
        parts.append(
            build_task_table(tasks, full=full, all_task_ids=[t.id for t in all_tasks])
        )
    else:
        parts.append(Text("No tasks found.", style="dim"))
    parts.append(Text("Press Ctrl+C to stop", style="dim"))
    return Group(*parts)


@app.command("watch")
@command_wrapper
async def watch(
    status: StatusFilter = typer.Option(
        StatusFilter.ALL, "--filter", "-f", help="Completion status to show"
    ),
    search: str = typer.Option("", "--search", "-s", help="Search title and description"),
    full: bool = typer.Option(False, "--full", help="Show full descriptions"),
) -> None:
    """Show tasks and keep the view updated as they change remotely."""
    async with open_app(live=True) as todo:
        synchronizer = todo.synchronizer
        if not todo.config_service.config.realtime.enabled:
            format_warning("Live updates are disabled (realtime.enabled = false)")

        def render() -> Group:
            return _watch_view(synchronizer, status, search, full)

        with Live(render(), console=console, refresh_per_second=4) as live:
            remove = synchronizer.add_listener(lambda: live.update(render()))
            try:
                while not synchronizer.closed:
                    await asyncio.sleep(0.5)
            finally:
                remove()

    format_info("Session ended")
