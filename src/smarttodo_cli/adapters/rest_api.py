"""REST API adapters - port implementations using the hosted backend.

These adapters wrap the API client to implement the ``TaskStore`` and
``SessionProvider`` interfaces, translating transport failures into
``RemoteError``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
from pydantic import ValidationError

from smarttodo_cli.adapters.change_feed import (
    InertSubscription,
    PollingSubscription,
    Versions,
)
from smarttodo_cli.exceptions import RemoteError, RemoteTimeoutError
from smarttodo_cli.models import Session, SessionEvent, Task, User
from smarttodo_cli.models.config_models import RealtimeConfig
from smarttodo_cli.repositories import (
    ChangeCallback,
    SessionChangeCallback,
    SessionProvider,
    Subscription,
    TaskStore,
)
from smarttodo_cli.services.api.auth import AuthAPI
from smarttodo_cli.services.api.client import APIClient
from smarttodo_cli.services.api.tasks import TasksAPI
from smarttodo_cli.services.config_service import ConfigService
from smarttodo_cli.utils.logger import get_logger

logger = get_logger("rest_api")


def error_message(response: httpx.Response) -> str:
    """Extract the backend's human-readable error message from a response."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("message", "msg", "error_description", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value

    return response.text or f"HTTP {response.status_code}"


@asynccontextmanager
async def translate_errors(action: str) -> AsyncIterator[None]:
    """Re-raise httpx failures inside the block as ``RemoteError``."""
    try:
        yield
    except httpx.TimeoutException as e:
        raise RemoteTimeoutError(f"{action} timed out") from e
    except httpx.HTTPStatusError as e:
        raise RemoteError(error_message(e.response), e.response.status_code) from e
    except httpx.RequestError as e:
        raise RemoteError(f"{action} failed: {e}") from e


class RestApiTaskStore(TaskStore):
    """Task store backed by the table API."""

    def __init__(
        self,
        client: APIClient,
        *,
        table: str = "tasks",
        realtime: RealtimeConfig | None = None,
    ):
        self.table = table
        self.tasks_api = TasksAPI(client, table)
        self.realtime = realtime or RealtimeConfig()

    async def select(self) -> list[Task]:
        async with translate_errors("Loading tasks"):
            rows = await self.tasks_api.list_tasks()
        try:
            return [Task.model_validate(row) for row in rows]
        except ValidationError as e:
            raise RemoteError(f"Unexpected task record from backend: {e}") from e

    async def insert(self, task: Task) -> None:
        async with translate_errors("Creating task"):
            await self.tasks_api.insert_task(task.to_record())

    async def update(self, task_id: str, patch: dict[str, Any]) -> None:
        async with translate_errors("Updating task"):
            await self.tasks_api.update_task(task_id, patch)

    async def delete(self, task_id: str) -> None:
        async with translate_errors("Deleting task"):
            await self.tasks_api.delete_task(task_id)

    async def fetch_versions(self) -> Versions:
        """Current ``id -> updated_at`` map of the table."""
        async with translate_errors("Reading changes"):
            rows = await self.tasks_api.list_versions()
        return {row["id"]: row.get("updated_at") for row in rows}

    async def subscribe(self, on_event: ChangeCallback) -> Subscription:
        if not self.realtime.enabled:
            return InertSubscription()

        subscription = PollingSubscription(
            self.fetch_versions,
            on_event,
            table=self.table,
            interval=self.realtime.poll_interval,
        )
        subscription.start()
        return subscription


class RestApiSessionProvider(SessionProvider):
    """Session provider backed by the auth API.

    The session is persisted through the config service so that it survives
    between CLI invocations. The provider also registers itself as the API
    client's refresher, so an expired access token is renewed transparently.
    """

    def __init__(self, client: APIClient, config_service: ConfigService | None = None):
        self.client = client
        self.auth_api = AuthAPI(client)
        self.config_service = config_service or client.config_manager
        self._listeners: list[SessionChangeCallback] = []
        self._session: Session | None = None
        client.session_refresher = self._refresh_for_client

    async def get_current_session(self) -> Session | None:
        data = self.config_service.load_session()
        if not data:
            return None

        try:
            session = Session.model_validate(data)
        except ValidationError:
            logger.warning("discarding unreadable stored session")
            self.config_service.clear_session()
            return None

        if session.is_expired():
            try:
                session = await self._refresh(session)
            except RemoteError as e:
                if e.is_auth_rejection or not session.refresh_token:
                    logger.info("stored session rejected: %s", e)
                    self._forget()
                    return None
                # Offline: keep the stored session, requests will retry the refresh
                logger.warning("could not refresh stored session: %s", e)

        self._session = session
        return session

    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def sign_up(self, email: str, password: str) -> Session | None:
        async with translate_errors("Sign up"):
            data = await self.auth_api.signup(email, password)

        if "access_token" not in data:
            # Email confirmation pending
            return None
        return await self._establish(Session.from_auth_response(data))

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        async with translate_errors("Sign in"):
            data = await self.auth_api.login(email, password)
        return await self._establish(Session.from_auth_response(data))

    async def sign_in_with_magic_link(self, email: str) -> None:
        async with translate_errors("Sending magic link"):
            await self.auth_api.send_magic_link(email)

    async def verify_magic_link(self, email: str, code: str) -> Session:
        async with translate_errors("Verifying magic link"):
            data = await self.auth_api.verify_otp(email, code)
        return await self._establish(Session.from_auth_response(data))

    async def sign_out(self) -> None:
        if self.config_service.access_token():
            try:
                async with translate_errors("Sign out"):
                    await self.auth_api.logout()
            except RemoteError as e:
                # Token may already be invalid; local sign-out still proceeds
                logger.warning("remote sign-out failed: %s", e)

        self._forget()
        logger.info("signed out")
        await self._notify(SessionEvent.SIGNED_OUT, None)

    async def get_user(self) -> User:
        async with translate_errors("Fetching user"):
            data = await self.auth_api.get_user()
        try:
            return User.model_validate(data)
        except ValidationError as e:
            raise RemoteError(f"Unexpected user record from backend: {e}") from e

    async def refresh_session(self) -> Session | None:
        session = self._session
        if session is None:
            data = self.config_service.load_session()
            session = Session.model_validate(data) if data else None
        if session is None or not session.refresh_token:
            return None

        try:
            refreshed = await self._refresh(session)
        except RemoteError as e:
            if not e.is_auth_rejection:
                logger.warning("session refresh failed: %s", e)
                return None
            logger.info("refresh token rejected, signing out: %s", e)
            self._forget()
            await self._notify(SessionEvent.SIGNED_OUT, None)
            return None

        await self._notify(SessionEvent.TOKEN_REFRESHED, refreshed)
        return refreshed

    async def _refresh(self, session: Session) -> Session:
        if not session.refresh_token:
            raise RemoteError("Session expired and cannot be refreshed", 401)
        async with translate_errors("Refreshing session"):
            data = await self.auth_api.refresh(session.refresh_token)
        refreshed = Session.from_auth_response(data)
        self._store(refreshed)
        return refreshed

    async def _refresh_for_client(self) -> bool:
        return await self.refresh_session() is not None

    async def _establish(self, session: Session) -> Session:
        self._store(session)
        logger.info("signed in as %s", session.user.email or session.user.id)
        await self._notify(SessionEvent.SIGNED_IN, session)
        return session

    def _store(self, session: Session) -> None:
        self._session = session
        self.config_service.save_session(session.model_dump(mode="json"))

    def _forget(self) -> None:
        self._session = None
        self.config_service.clear_session()

    async def _notify(self, event: SessionEvent, session: Session | None) -> None:
        for callback in list(self._listeners):
            await callback(event, session)
