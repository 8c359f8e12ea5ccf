"""Application wiring.

Builds the config service, API client, backend adapters and session
lifecycle explicitly and hands them to commands as one ``TodoApp``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from smarttodo_cli.adapters.rest_api import RestApiSessionProvider, RestApiTaskStore
from smarttodo_cli.models.config_models import RealtimeConfig
from smarttodo_cli.repositories import SessionProvider, TaskStore
from smarttodo_cli.services.api.client import APIClient
from smarttodo_cli.services.config_service import ConfigService, get_config_service
from smarttodo_cli.services.session_service import SessionLifecycle
from smarttodo_cli.services.task_sync import TaskSynchronizer


@dataclass
class TodoApp:
    """Everything a command needs, constructed once per invocation."""

    config_service: ConfigService
    store: TaskStore
    provider: SessionProvider
    lifecycle: SessionLifecycle

    @property
    def synchronizer(self) -> TaskSynchronizer:
        """Active synchronizer; raises when nobody is signed in."""
        return self.lifecycle.require_synchronizer()


@asynccontextmanager
async def open_app(
    config_service: ConfigService | None = None,
    *,
    live: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[TodoApp]:
    """Build the application and resolve the session; tear it all down on exit.

    The change feed only runs when *live* is set and it is enabled in config.
    """
    config_service = config_service or get_config_service()
    config = config_service.config
    realtime = config.realtime if live else RealtimeConfig(enabled=False)

    async with APIClient(config_service, transport=transport) as client:
        store = RestApiTaskStore(client, realtime=realtime)
        provider = RestApiSessionProvider(client, config_service)
        lifecycle = SessionLifecycle(provider, store, sync_timeout=config.sync.timeout)

        try:
            await lifecycle.start()
            yield TodoApp(
                config_service=config_service,
                store=store,
                provider=provider,
                lifecycle=lifecycle,
            )
        finally:
            await lifecycle.close()
