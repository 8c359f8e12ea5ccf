"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem/API state.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from smarttodo_cli.services.config_service import ENV_ANON_KEY, ENV_BACKEND_URL

from fakes import FakeSessionProvider, FakeTaskStore

# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path, monkeypatch):
    """Keep log files and backend overrides of the developer machine out of tests."""
    monkeypatch.delenv(ENV_BACKEND_URL, raising=False)
    monkeypatch.delenv(ENV_ANON_KEY, raising=False)
    with patch(
        "smarttodo_cli.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")
    ):
        yield


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config and session files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from smarttodo_cli.services.config_service import ConfigService, get_config_service

    tmpdir = str(tmp_path / "config")
    get_config_service.cache_clear()
    with patch("smarttodo_cli.services.config_service.user_config_dir", return_value=tmpdir):
        svc = ConfigService()
        svc.load_config()
        yield svc
    get_config_service.cache_clear()

@pytest.fixture()
def store():
    return FakeTaskStore()


@pytest.fixture()
def provider():
    return FakeSessionProvider()
