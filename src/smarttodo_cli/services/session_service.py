"""Session lifecycle - drives the task synchronizer from auth state.

States: LOADING until the provider has been asked for an existing session,
then ANONYMOUS or AUTHENTICATED. Entering AUTHENTICATED builds a fresh
synchronizer, subscribes to remote changes and loads the tasks; leaving it
cancels the subscription and discards local task state.
"""

from __future__ import annotations

from collections.abc import Callable

from smarttodo_cli.exceptions import (
    NotAuthenticatedError,
    RemoteError,
    SessionLoadingError,
)
from smarttodo_cli.models import Session, SessionEvent, SessionState
from smarttodo_cli.repositories import SessionProvider, Subscription, TaskStore
from smarttodo_cli.services.task_sync import TaskSynchronizer
from smarttodo_cli.utils.logger import get_logger

logger = get_logger("session")

SynchronizerFactory = Callable[[TaskStore, str], TaskSynchronizer]


class SessionLifecycle:
    """Owns the session reference, the synchronizer and the change subscription."""

    def __init__(
        self,
        provider: SessionProvider,
        store: TaskStore,
        *,
        sync_timeout: float | None = 15.0,
        synchronizer_factory: SynchronizerFactory | None = None,
    ):
        self.provider = provider
        self.store = store
        self.sync_timeout = sync_timeout
        self._make_synchronizer = synchronizer_factory or self._default_synchronizer

        self.state = SessionState.LOADING
        self.session: Session | None = None
        self.synchronizer: TaskSynchronizer | None = None
        self.subscription: Subscription | None = None
        self._unlisten: Callable[[], None] | None = None
        self.last_event: SessionEvent | None = None

    def _default_synchronizer(self, store: TaskStore, owner_id: str) -> TaskSynchronizer:
        return TaskSynchronizer(store, owner_id=owner_id, timeout=self.sync_timeout)

    @property
    def user_id(self) -> str | None:
        return self.session.user.id if self.session else None

    async def start(self) -> SessionState:
        """Resolve the initial session and start listening for changes."""
        session = await self.provider.get_current_session()
        self._unlisten = self.provider.on_session_change(self._on_session_change)
        await self._on_session_change(SessionEvent.INITIAL_SESSION, session)
        return self.state

    def require_synchronizer(self) -> TaskSynchronizer:
        """The active synchronizer.

        Raises:
            SessionLoadingError: While the initial session is unresolved
            NotAuthenticatedError: When nobody is signed in
        """
        if self.state is SessionState.LOADING:
            raise SessionLoadingError("Session is still loading")
        if self.state is SessionState.ANONYMOUS or self.synchronizer is None:
            raise NotAuthenticatedError(
                "Not signed in. Use 'smarttodo login' to authenticate."
            )
        return self.synchronizer

    async def _on_session_change(
        self, event: SessionEvent, session: Session | None
    ) -> None:
        logger.debug("session event %s", event.value)
        self.last_event = event
        await self._apply(session)

    async def _apply(self, session: Session | None) -> None:
        if session is None:
            if self.state is not SessionState.ANONYMOUS:
                await self._enter_anonymous()
            return

        if (
            self.state is SessionState.AUTHENTICATED
            and self.session is not None
            and self.session.user.id == session.user.id
        ):
            # Token refresh for the same identity
            self.session = session
            return

        await self._enter_authenticated(session)

    async def _enter_authenticated(self, session: Session) -> None:
        await self._teardown()
        self.session = session
        self.synchronizer = self._make_synchronizer(self.store, session.user.id)
        self.state = SessionState.AUTHENTICATED
        logger.info("authenticated as %s", session.user.email or session.user.id)

        self.subscription = await self.store.subscribe(
            self.synchronizer.on_remote_change
        )
        try:
            await self.synchronizer.load_all()
        except RemoteError as e:
            # Stay signed in with an empty, flagged view
            logger.warning("initial load failed: %s", e)

    async def _enter_anonymous(self) -> None:
        await self._teardown()
        self.session = None
        self.state = SessionState.ANONYMOUS
        logger.info("anonymous")

    async def _teardown(self) -> None:
        subscription, self.subscription = self.subscription, None
        if subscription is not None:
            await subscription.cancel()
        synchronizer, self.synchronizer = self.synchronizer, None
        if synchronizer is not None:
            synchronizer.close()

    async def close(self) -> None:
        """Stop listening and release the subscription; the stored session is kept."""
        if self._unlisten is not None:
            self._unlisten()
            self._unlisten = None
        await self._teardown()

    # ------------------------------------------------------------------
    # Auth operations; transitions follow from the provider's notifications
    # ------------------------------------------------------------------

    async def sign_up(self, email: str, password: str) -> Session | None:
        return await self.provider.sign_up(email, password)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        return await self.provider.sign_in_with_password(email, password)

    async def sign_in_with_magic_link(self, email: str) -> None:
        await self.provider.sign_in_with_magic_link(email)

    async def verify_magic_link(self, email: str, code: str) -> Session:
        return await self.provider.verify_magic_link(email, code)

    async def sign_out(self) -> None:
        await self.provider.sign_out()
