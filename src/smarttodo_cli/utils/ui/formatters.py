"""Output formatters for different formats."""

import json
from datetime import date, datetime
from typing import Any

import yaml
from rich.console import Group
from rich.table import Table
from rich.text import Text

from smarttodo_cli.models import Priority, Task, TaskSummary
from smarttodo_cli.utils.ui.console import get_console

console = get_console()

DESCRIPTION_PREVIEW = 80

PRIORITY_COLORS = {
    Priority.HIGH: "bold red",
    Priority.MEDIUM: "bold yellow",
    Priority.LOW: "bold green",
}

# Status Icons
STATUS_ICONS = {
    "open": "⬜",
    "completed": "☑️",
}


def calculate_unique_suffixes(task_ids: list[str]) -> dict[str, int]:
    """
    Calculate minimum unique suffix length for each task ID.

    Starts from length 1 and grows until unique among all IDs.

    Args:
        task_ids: List of full task IDs

    Returns:
        Dict mapping task_id -> required suffix length
    """
    if not task_ids:
        return {}

    result = {}

    for task_id in task_ids:
        for length in range(1, len(task_id) + 1):
            suffix = task_id[-length:]

            conflicts = [
                tid for tid in task_ids if tid != task_id and tid.endswith(suffix)
            ]

            if not conflicts:
                result[task_id] = length
                break
        else:
            result[task_id] = len(task_id)

    return result


def short_ids(tasks: list[Task], all_task_ids: list[str] | None = None) -> dict[str, str]:
    """Map each task id to its shortest unique suffix."""
    ids = all_task_ids if all_task_ids is not None else [t.id for t in tasks]
    lengths = calculate_unique_suffixes(ids)
    return {tid: tid[-length:] for tid, length in lengths.items()}


def preview(text: str, full: bool = False) -> str:
    """Shorten long descriptions unless *full* is requested."""
    if full or len(text) <= DESCRIPTION_PREVIEW:
        return text
    return text[:DESCRIPTION_PREVIEW] + "..."


def format_date(value: date | datetime | None) -> str:
    """Render a date or timestamp for display; '-' when unknown."""
    if value is None:
        return "-"
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.strftime("%Y-%m-%d %H:%M")
    return value.isoformat()


def format_output(
    tasks: list[Task],
    output_format: str = "pretty",
    *,
    compact: bool = False,
    full: bool = False,
    all_task_ids: list[str] | None = None,
) -> None:
    """Format and display a task list based on format."""
    data = [task.model_dump(mode="json") for task in tasks]
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    elif output_format == "table":
        if not tasks:
            console.print("[yellow]No tasks found.[/yellow]")
            return
        console.print(build_task_table(tasks, full=full, all_task_ids=all_task_ids))
    elif output_format == "quiet":
        for task in tasks:
            print(task.id)
    else:
        format_tasks_pretty(tasks, compact=compact, full=full, all_task_ids=all_task_ids)


def build_task_table(
    tasks: list[Task],
    *,
    full: bool = False,
    all_task_ids: list[str] | None = None,
) -> Table:
    """Build a Rich table of tasks (also used by the live view)."""
    ids = short_ids(tasks, all_task_ids)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("", width=2)
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Deadline", style="cyan")
    table.add_column("Created", style="dim")

    for task in tasks:
        title = Text(task.title, style="strike dim" if task.completed else "bold")
        if task.description:
            title.append("\n")
            title.append(preview(task.description, full), style="dim")
        table.add_row(
            ids.get(task.id, task.id[-6:]),
            STATUS_ICONS["completed" if task.completed else "open"],
            title,
            Text(task.priority.value, style=PRIORITY_COLORS[task.priority]),
            format_date(task.deadline),
            format_date(task.created_at),
        )

    return table


def format_tasks_pretty(
    tasks: list[Task],
    compact: bool = False,
    full: bool = False,
    all_task_ids: list[str] | None = None,
) -> None:
    """Format tasks in pretty format."""
    active = [t for t in tasks if not t.completed]

    header = Text()
    header.append("📝 Tasks ", style="bold cyan")
    header.append(f"({len(active)} active, {len(tasks) - len(active)} done)", style="dim")
    console.print(header)
    console.print()

    if not tasks:
        console.print("[dim]No tasks found.[/dim]")
        return

    ids = short_ids(tasks, all_task_ids)
    for task in tasks:
        console.print(format_task_item(task, ids.get(task.id), compact=compact, full=full))


def format_task_item(
    task: Task,
    short_id: str | None = None,
    *,
    compact: bool = False,
    full: bool = False,
) -> Group | Text:
    """Render a single task as one line plus an optional detail block."""
    line = Text()
    line.append(STATUS_ICONS["completed" if task.completed else "open"] + " ")
    line.append(task.title, style="strike dim" if task.completed else "bold")
    line.append(f"  {task.priority.value}", style=PRIORITY_COLORS[task.priority])
    if task.deadline:
        line.append(f"  due {format_date(task.deadline)}", style="cyan")
    line.append(f"  #{short_id or task.id[-6:]}", style="dim")

    if compact:
        return line

    details = []
    if task.description:
        details.append(Text(f"   {preview(task.description, full)}", style="dim"))
    meta = Text(f"   └─ Created: {format_date(task.created_at)}", style="dim")
    details.append(meta)
    return Group(line, *details)


def format_summary(summary: TaskSummary) -> None:
    """Display the overview counts."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Total", str(summary.total))
    table.add_row("Active", str(summary.active))
    table.add_row("Completed", str(summary.completed))
    console.print(table)


def format_single_item(item: dict[str, Any]) -> None:
    """Format a single item as key-value pairs."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in item.items():
        formatted_key = key.replace("_", " ").title()
        if isinstance(value, bool):
            formatted_value = "✓" if value else "✗"
        elif value is None:
            formatted_value = "-"
        else:
            formatted_value = str(value)
        table.add_row(formatted_key, formatted_value)

    console.print(table)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")
