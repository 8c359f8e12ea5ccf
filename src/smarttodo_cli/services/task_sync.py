"""Task synchronizer - the authoritative local view of the user's tasks.

Mutations are applied to local state first and then sent to the remote
store. A failed create is rolled back; a failed update or delete is repaired
by reloading everything, since the remote outcome is unknown. Any change
observed on the remote table also triggers a full reload.

Overlapping reloads are resolved by a generation counter: a result is only
applied if no newer reload was requested while it was in flight.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from datetime import UTC, date, datetime
from typing import TypeVar

from smarttodo_cli.exceptions import (
    RemoteError,
    RemoteTimeoutError,
    TaskNotFoundError,
    TaskValidationError,
)
from smarttodo_cli.models import ChangeEvent, Priority, Task, TaskUpdate
from smarttodo_cli.repositories import TaskStore
from smarttodo_cli.utils.logger import get_logger

logger = get_logger("task_sync")

T = TypeVar("T")

Listener = Callable[[], None]


def _now() -> datetime:
    return datetime.now(UTC)


class TaskSynchronizer:
    """Optimistic local task state reconciled against a remote store."""

    def __init__(
        self,
        store: TaskStore,
        *,
        owner_id: str,
        timeout: float | None = 15.0,
        clock: Callable[[], datetime] = _now,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        """Initialize the synchronizer.

        Args:
            store: Remote task store
            owner_id: Id of the authenticated user; stamped on created tasks
            timeout: Seconds allowed per remote call (None disables)
            clock: Source of ``updated_at`` timestamps
            id_factory: Source of new task ids
        """
        self.store = store
        self.owner_id = owner_id
        self.timeout = timeout
        self._clock = clock
        self._id_factory = id_factory

        self.tasks: dict[str, Task] = {}
        self.loading = True
        self.last_error: str | None = None
        self.closed = False

        self._generation = 0
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def task_list(self) -> list[Task]:
        """Snapshot of local tasks, newest created first."""
        return list(self.tasks.values())

    def get(self, task_id: str) -> Task:
        """Return the local task with the given id."""
        try:
            return self.tasks[task_id]
        except KeyError:
            raise TaskNotFoundError(f"Task '{task_id}' not found") from None

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every local state change; returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def _remote(self, call: Awaitable[T]) -> T:
        if self.timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteTimeoutError(
                f"Backend did not respond within {self.timeout:g}s"
            ) from e

    async def load_all(self) -> list[Task]:
        """Replace local state with every task visible to the current user.

        Raises:
            RemoteError: If the read fails (``loading`` is cleared regardless)
        """
        self._generation += 1
        generation = self._generation
        self.loading = True
        self._changed()

        try:
            tasks = await self._remote(self.store.select())
        except RemoteError as e:
            if generation == self._generation:
                self.loading = False
                self.last_error = e.message
                self._changed()
            logger.warning("load failed: %s", e)
            raise

        if self.closed or generation != self._generation:
            logger.debug("discarding superseded load #%d", generation)
            return self.task_list()

        self.tasks = {task.id: task for task in tasks}
        self.loading = False
        self.last_error = None
        logger.debug("loaded %d tasks", len(self.tasks))
        self._changed()
        return self.task_list()

    async def _resync(self, cause: RemoteError | None = None) -> None:
        """Reload after a failed mutation; a failing reload is only recorded.

        *cause* stays visible in ``last_error`` even when the reload succeeds.
        """
        try:
            await self.load_all()
        except RemoteError as e:
            logger.warning("resync failed, local state may be stale: %s", e)
        if cause is not None:
            self.last_error = cause.message
            self._changed()

    async def on_remote_change(self, event: ChangeEvent) -> None:
        """Change feed callback: any insert/update/delete triggers a full reload."""
        if self.closed:
            logger.debug("ignoring %s on closed synchronizer", event.type.value)
            return
        logger.info("remote %s on %s, reloading", event.type.value, event.record_id)
        await self._resync()

    def close(self) -> None:
        """Discard local state; in-flight loads and later events are ignored."""
        self.closed = True
        self._generation += 1
        self.tasks = {}
        self.loading = False
        self._changed()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(
        self,
        title: str,
        description: str = "",
        priority: Priority = Priority.MEDIUM,
        deadline: date | None = None,
    ) -> Task:
        """Create a task optimistically.

        Raises:
            TaskValidationError: If the title is empty (nothing is sent)
            RemoteError: If the insert fails; the task is removed locally
        """
        title = (title or "").strip()
        if not title:
            raise TaskValidationError("Task title cannot be empty")

        task = Task(
            id=self._id_factory(),
            owner=self.owner_id,
            title=title,
            description=(description or "").strip(),
            completed=False,
            priority=priority,
            deadline=deadline,
        )
        self.tasks = {task.id: task, **self.tasks}
        self._changed()

        try:
            await self._remote(self.store.insert(task))
        except RemoteError as e:
            logger.warning("create %s failed, rolling back: %s", task.id, e)
            self.tasks.pop(task.id, None)
            self.last_error = e.message
            self._changed()
            raise

        logger.info("created task %s", task.id)
        return task

    async def update(self, task_id: str, changes: TaskUpdate) -> Task:
        """Apply *changes* optimistically.

        Raises:
            TaskNotFoundError: If no local task has this id
            TaskValidationError: If the new title is empty
            RemoteError: If the update fails; local state is reloaded first
        """
        current = self.get(task_id)
        patch = changes.changes()
        if "title" in patch:
            patch["title"] = (patch["title"] or "").strip()
            if not patch["title"]:
                raise TaskValidationError("Task title cannot be empty")
        if "description" in patch:
            patch["description"] = (patch["description"] or "").strip()
        if not patch:
            return current

        updated_at = self._clock()
        updated = current.model_copy(update={**patch, "updated_at": updated_at})
        self.tasks[task_id] = updated
        self._changed()

        wire_patch = TaskUpdate(**patch).to_patch()
        wire_patch["updated_at"] = updated_at.isoformat()
        try:
            await self._remote(self.store.update(task_id, wire_patch))
        except RemoteError as e:
            logger.warning("update %s failed, resyncing: %s", task_id, e)
            await self._resync(cause=e)
            raise

        logger.info("updated task %s (%s)", task_id, ", ".join(sorted(patch)))
        return updated

    async def toggle(self, task_id: str) -> Task:
        """Flip the completion status of a task."""
        return await self.update(
            task_id, TaskUpdate(completed=not self.get(task_id).completed)
        )

    async def delete(self, task_id: str) -> None:
        """Delete a task optimistically.

        Raises:
            TaskNotFoundError: If no local task has this id
            RemoteError: If the delete fails; local state is reloaded first
        """
        self.get(task_id)
        del self.tasks[task_id]
        self._changed()

        try:
            await self._remote(self.store.delete(task_id))
        except RemoteError as e:
            # The row may or may not still exist remotely
            logger.warning("delete %s failed, resyncing: %s", task_id, e)
            await self._resync(cause=e)
            raise

        logger.info("deleted task %s", task_id)

    async def complete_all(self) -> int:
        """Mark every active task completed.

        Returns:
            Number of tasks marked completed

        Raises:
            RemoteError: If any of the updates failed
        """
        active = [task.id for task in self.task_list() if not task.completed]
        results = await asyncio.gather(
            *(self.update(task_id, TaskUpdate(completed=True)) for task_id in active),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if not isinstance(failure, RemoteError):
                raise failure
        if failures:
            raise RemoteError(
                f"{len(failures)} of {len(active)} tasks could not be completed: "
                f"{failures[0]}"
            )
        return len(active)
