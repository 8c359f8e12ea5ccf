"""Port definitions for the remote task store and the session provider.

Both collaborators are hosted services treated as black boxes. The
interfaces follow the hexagonal architecture (Ports & Adapters) pattern so
that the synchronizer and session lifecycle can be exercised against
in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from smarttodo_cli.models import ChangeEvent, Session, SessionEvent, Task, User

ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]
SessionChangeCallback = Callable[[SessionEvent, Session | None], Awaitable[None]]


class Subscription(ABC):
    """Handle on a live change subscription."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """Whether the subscription is still delivering events."""

    @abstractmethod
    async def cancel(self) -> None:
        """Stop delivering events. Safe to call more than once."""


class TaskStore(ABC):
    """Remote table of task records.

    Every method raises ``RemoteError`` when the backend call fails. Reads
    are eventually consistent with the change feed.
    """

    table: str = "tasks"

    @abstractmethod
    async def select(self) -> list[Task]:
        """Return every task visible to the current identity."""
        raise NotImplementedError("TaskStore.select() must be implemented by adapter")

    @abstractmethod
    async def insert(self, task: Task) -> None:
        """Insert a new task record."""
        raise NotImplementedError("TaskStore.insert() must be implemented by adapter")

    @abstractmethod
    async def update(self, task_id: str, patch: dict[str, Any]) -> None:
        """Apply a partial update to the task with the given id."""
        raise NotImplementedError("TaskStore.update() must be implemented by adapter")

    @abstractmethod
    async def delete(self, task_id: str) -> None:
        """Delete the task with the given id."""
        raise NotImplementedError("TaskStore.delete() must be implemented by adapter")

    @abstractmethod
    async def subscribe(self, on_event: ChangeCallback) -> Subscription:
        """Deliver insert/update/delete events on the table to *on_event*."""
        raise NotImplementedError(
            "TaskStore.subscribe() must be implemented by adapter"
        )


class SessionProvider(ABC):
    """Hosted identity service issuing and refreshing sessions."""

    @abstractmethod
    async def get_current_session(self) -> Session | None:
        """Return the existing session, refreshing it if expired, or None."""

    @abstractmethod
    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        """Register *callback* for session changes; returns an unsubscribe function."""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Session | None:
        """Create an account. Returns None when email confirmation is pending."""

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Sign in with email and password."""

    @abstractmethod
    async def sign_in_with_magic_link(self, email: str) -> None:
        """Send a magic sign-in link to *email*."""

    @abstractmethod
    async def verify_magic_link(self, email: str, code: str) -> Session:
        """Complete a magic-link sign-in."""

    @abstractmethod
    async def sign_out(self) -> None:
        """Sign out. Always clears the local session."""

    @abstractmethod
    async def refresh_session(self) -> Session | None:
        """Refresh the current session; None if it cannot be refreshed."""

    @abstractmethod
    async def get_user(self) -> User:
        """Ask the identity service who the current access token belongs to."""
