"""Client-side filtering, search and ordering of task lists.

Pure functions: nothing here touches the synchronizer or is persisted.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from smarttodo_cli.models import Priority, SortKey, StatusFilter, Task, TaskSummary

_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def filter_tasks(
    tasks: Iterable[Task],
    status: StatusFilter | str = StatusFilter.ALL,
    query: str = "",
) -> list[Task]:
    """Filter tasks by completion bucket and a case-insensitive search string.

    Args:
        tasks: Tasks to filter
        status: "all", "active" (not completed) or "completed"
        query: Substring matched against title or description; empty matches all

    Returns:
        Matching tasks, in their original order
    """
    status = StatusFilter(status)
    needle = (query or "").lower()

    result = []
    for task in tasks:
        if status is StatusFilter.ACTIVE and task.completed:
            continue
        if status is StatusFilter.COMPLETED and not task.completed:
            continue
        if needle and not (
            needle in task.title.lower() or needle in (task.description or "").lower()
        ):
            continue
        result.append(task)
    return result


def summarize(tasks: Iterable[Task]) -> TaskSummary:
    """Count total, completed and active tasks."""
    tasks = list(tasks)
    completed = sum(1 for task in tasks if task.completed)
    return TaskSummary(total=len(tasks), completed=completed, active=len(tasks) - completed)


def sort_tasks(tasks: Iterable[Task], by: SortKey | str = SortKey.CREATED) -> list[Task]:
    """Order tasks for display.

    ``created`` puts the newest first, with tasks whose server timestamp is
    not known yet (just created) on top; ``deadline`` puts the earliest
    first and undated tasks last.
    """
    by = SortKey(by)
    tasks = list(tasks)

    if by is SortKey.CREATED:
        return sorted(
            tasks,
            key=lambda t: (t.created_at is not None, _neg_timestamp(t.created_at)),
        )
    if by is SortKey.DEADLINE:
        return sorted(tasks, key=lambda t: (t.deadline is None, t.deadline or date.max))
    if by is SortKey.PRIORITY:
        return sorted(tasks, key=lambda t: _PRIORITY_RANK[t.priority])
    return sorted(tasks, key=lambda t: t.title.lower())


def _neg_timestamp(value: datetime | None) -> float:
    return -value.timestamp() if value is not None else 0.0
