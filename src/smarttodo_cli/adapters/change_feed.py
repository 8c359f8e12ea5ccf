"""Change subscription over the table API.

The subscription periodically reads the ``(id, updated_at)`` pairs of the
table and reports every difference from the previous read as an
insert/update/delete event. The first read is a baseline and reports
nothing.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

from smarttodo_cli.exceptions import RemoteError
from smarttodo_cli.models import ChangeEvent, ChangeType
from smarttodo_cli.repositories import ChangeCallback, Subscription
from smarttodo_cli.utils.logger import get_logger

logger = get_logger("change_feed")

Versions = dict[str, str | None]
VersionFetcher = Callable[[], Awaitable[Versions]]


def diff_versions(previous: Versions, current: Versions) -> list[tuple[ChangeType, str]]:
    """Compare two snapshots of row versions.

    Returns:
        ``(change type, record id)`` pairs: inserts, then updates, then deletes
    """
    inserted = [rid for rid in current if rid not in previous]
    updated = [
        rid for rid in current if rid in previous and current[rid] != previous[rid]
    ]
    deleted = [rid for rid in previous if rid not in current]
    return (
        [(ChangeType.INSERT, rid) for rid in inserted]
        + [(ChangeType.UPDATE, rid) for rid in updated]
        + [(ChangeType.DELETE, rid) for rid in deleted]
    )


class PollingSubscription(Subscription):
    """Subscription delivering table changes found by periodic reads."""

    def __init__(
        self,
        fetch_versions: VersionFetcher,
        on_event: ChangeCallback,
        *,
        table: str,
        interval: float,
    ):
        self._fetch_versions = fetch_versions
        self._on_event = on_event
        self.table = table
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._stopped = False

    @property
    def active(self) -> bool:
        return (
            not self._stopped and self._task is not None and not self._task.done()
        )

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self._task is None and not self._stopped:
            self._task = asyncio.create_task(
                self._run(), name=f"change-feed:{self.table}"
            )
            logger.info("subscribed to %s (every %.1fs)", self.table, self.interval)

    async def cancel(self) -> None:
        self._stopped = True
        task, self._task = self._task, None
        if task is None:
            return
        if task is asyncio.current_task():
            # Called from inside our own fetch or handler; _run stops on the flag
            logger.info("unsubscribed from %s", self.table)
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("unsubscribed from %s", self.table)

    async def _run(self) -> None:
        previous: Versions | None = None
        while not self._stopped:
            try:
                current = await self._fetch_versions()
            except RemoteError as e:
                if self._stopped:
                    break
                logger.warning("change feed read failed for %s: %s", self.table, e)
            else:
                if previous is not None:
                    for change_type, record_id in diff_versions(previous, current):
                        if self._stopped:
                            return
                        await self._dispatch(
                            ChangeEvent(
                                type=change_type, table=self.table, record_id=record_id
                            )
                        )
                previous = current
            if self._stopped:
                break
            await asyncio.sleep(self.interval)

    async def _dispatch(self, event: ChangeEvent) -> None:
        logger.debug("change on %s: %s %s", event.table, event.type.value, event.record_id)
        try:
            await self._on_event(event)
        except Exception:
            # A failing handler must not end the subscription
            logger.exception("change handler failed for %s", event.record_id)


class InertSubscription(Subscription):
    """Subscription that never delivers anything (live updates disabled)."""

    def __init__(self):
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    async def cancel(self) -> None:
        self._active = False
