"""Task helper utilities."""

from smarttodo_cli.exceptions import TaskNotFoundError
from smarttodo_cli.services.task_sync import TaskSynchronizer


def _find_shortest_unique_suffix(task_ids: list[str], target_id: str) -> str:
    """
    Find the shortest suffix of target_id that uniquely identifies it.

    Args:
        task_ids: List of all task IDs
        target_id: The task ID to find a unique suffix for

    Returns:
        The shortest unique suffix
    """
    for length in range(1, len(target_id) + 1):
        suffix = target_id[-length:]
        matches = [tid for tid in task_ids if tid.endswith(suffix)]
        if len(matches) == 1:
            return suffix
    return target_id


def resolve_task_id(synchronizer: TaskSynchronizer, task_id_or_suffix: str) -> str:
    """
    Resolve a task ID or suffix to a full task ID using the loaded tasks.

    Args:
        synchronizer: Synchronizer holding the current user's tasks
        task_id_or_suffix: Full task ID or suffix to resolve

    Returns:
        The full task ID

    Raises:
        TaskNotFoundError: If no task matches or the suffix is ambiguous
    """
    task_id_or_suffix = task_id_or_suffix.strip().lstrip("#")
    if task_id_or_suffix in synchronizer.tasks:
        return task_id_or_suffix

    matching = [
        task for task in synchronizer.task_list() if task.id.endswith(task_id_or_suffix)
    ]

    if not matching:
        raise TaskNotFoundError(f"No task found with ID or suffix '{task_id_or_suffix}'")

    if len(matching) > 1:
        all_ids = list(synchronizer.tasks)
        suggestions = [
            f"  {_find_shortest_unique_suffix(all_ids, task.id)}: {task.title}"
            for task in matching[:5]
        ]
        raise TaskNotFoundError(
            f"Multiple tasks match '{task_id_or_suffix}'. Use a longer suffix:\n"
            + "\n".join(suggestions)
        )

    return matching[0].id
