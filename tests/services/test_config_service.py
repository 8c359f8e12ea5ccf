"""Unit tests for services/config_service.py.

Covers loading and saving config.json, dot-notation get/set/reset,
environment overrides for the backend, and stored session handling.
Uses a real ConfigService pointed at a tmp_path directory.
"""

from __future__ import annotations

import json
import stat

import pytest
from pydantic import ValidationError

from smarttodo_cli.models.config_models import AppConfig
from smarttodo_cli.services.config_service import (
    ENV_ANON_KEY,
    ENV_BACKEND_URL,
    ConfigService,
)

# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------


def test_first_run_writes_defaults(tmp_config):
    assert tmp_config.config_path.exists()
    data = json.loads(tmp_config.config_path.read_text())
    assert data["backend"]["url"] == "http://localhost:54321"
    assert data["sync"]["timeout"] == 15.0
    assert data["realtime"]["enabled"] is True


def test_config_file_is_owner_only(tmp_config):
    mode = stat.S_IMODE(tmp_config.config_path.stat().st_mode)
    assert mode == 0o600


def test_corrupt_config_raises_runtime_error(tmp_config):
    tmp_config.config_path.write_text("{not json")
    fresh = ConfigService()

    with pytest.raises(RuntimeError, match="Failed to load config"):
        fresh.load_config()


def test_saved_values_survive_reload(tmp_config):
    tmp_config.set("backend.url", "https://abc.supabase.co/")

    fresh = ConfigService()
    assert fresh.config.backend.url == "https://abc.supabase.co"


# ---------------------------------------------------------------------------
# get / set / reset
# ---------------------------------------------------------------------------


def test_get_dotted_key(tmp_config):
    assert tmp_config.get("realtime.poll_interval") == 5.0
    assert tmp_config.get("output.format") == "pretty"


def test_get_unknown_key_returns_none(tmp_config):
    assert tmp_config.get("backend.nope") is None
    assert tmp_config.get("backend.url.deeper") is None


def test_set_coerces_value(tmp_config):
    tmp_config.set("sync.timeout", "2.5")
    assert tmp_config.config.sync.timeout == 2.5


def test_set_unknown_key_raises_key_error(tmp_config):
    with pytest.raises(KeyError):
        tmp_config.set("nope.key", "x")


def test_set_invalid_value_is_rejected(tmp_config):
    with pytest.raises(ValidationError):
        tmp_config.set("realtime.poll_interval", -1)
    assert tmp_config.config.realtime.poll_interval == 5.0


def test_reset_single_key(tmp_config):
    tmp_config.set("backend.retry", 0)
    tmp_config.reset("backend.retry")
    assert tmp_config.config.backend.retry == 3


def test_reset_section(tmp_config):
    tmp_config.set("realtime.enabled", False)
    tmp_config.reset("realtime")
    assert tmp_config.config.realtime.enabled is True


def test_reset_everything(tmp_config):
    tmp_config.set("output.format", "json")
    tmp_config.reset()
    assert tmp_config.config == AppConfig()


def test_reset_unknown_key_raises_key_error(tmp_config):
    with pytest.raises(KeyError):
        tmp_config.reset("nope")


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


def test_backend_env_overrides_are_not_persisted(tmp_config, monkeypatch):
    monkeypatch.setenv(ENV_BACKEND_URL, "https://env.example.com/")
    monkeypatch.setenv(ENV_ANON_KEY, "anon-from-env")

    backend = tmp_config.backend()

    assert backend.url == "https://env.example.com"
    assert backend.anon_key == "anon-from-env"
    assert tmp_config.config.backend.url == "http://localhost:54321"
    saved = json.loads(tmp_config.config_path.read_text())
    assert saved["backend"]["anon_key"] == ""


def test_backend_without_overrides_is_the_config(tmp_config):
    assert tmp_config.backend() is tmp_config.config.backend


# ---------------------------------------------------------------------------
# Session storage
# ---------------------------------------------------------------------------


def test_session_round_trip(tmp_config):
    assert tmp_config.load_session() is None
    assert tmp_config.access_token() is None

    tmp_config.save_session({"access_token": "tok", "user": {"id": "u1"}})

    assert tmp_config.load_session()["user"]["id"] == "u1"
    assert tmp_config.access_token() == "tok"
    assert stat.S_IMODE(tmp_config.session_path.stat().st_mode) == 0o600


def test_clear_session(tmp_config):
    tmp_config.save_session({"access_token": "tok"})
    tmp_config.clear_session()
    tmp_config.clear_session()

    assert tmp_config.load_session() is None


def test_unreadable_session_is_treated_as_missing(tmp_config):
    tmp_config.session_path.write_text("garbage")
    assert tmp_config.load_session() is None
