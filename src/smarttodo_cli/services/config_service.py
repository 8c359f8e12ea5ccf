"""Configuration service for managing Smart To-Do configuration.

This module provides the ConfigService class, the single source of truth for
configuration and stored session state. It handles:

- Loading and saving config.json
- Dot-notation get/set/reset of individual settings
- Environment overrides for the backend connection
- Persisting the signed-in session (owner-only file permissions)
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from json import JSONDecodeError
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir
from pydantic import BaseModel

from smarttodo_cli.models.config_models import AppConfig, BackendConfig

ENV_BACKEND_URL = "SMARTTODO_BACKEND_URL"
ENV_ANON_KEY = "SMARTTODO_ANON_KEY"


class ConfigService:
    """Service for managing application configuration and the stored session."""

    def __init__(self):
        """Initialize the config service."""

        self.config_dir = Path(user_config_dir("smarttodo_cli"))
        self.config_path = self.config_dir / "config.json"
        self.session_path = self.config_dir / "session.json"

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config  # Return cached config if already loaded

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run
            self._config = AppConfig()
            self.save_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config {self.config_path}: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to storage."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self.config.model_dump_json(indent=4))

            self.config_path.chmod(0o600)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def backend(self) -> BackendConfig:
        """Backend settings with environment overrides applied (never persisted)."""
        backend = self.config.backend
        overrides: dict[str, Any] = {}
        if os.environ.get(ENV_BACKEND_URL):
            overrides["url"] = os.environ[ENV_BACKEND_URL]
        if os.environ.get(ENV_ANON_KEY):
            overrides["anon_key"] = os.environ[ENV_ANON_KEY]
        if not overrides:
            return backend
        return BackendConfig(**{**backend.model_dump(), **overrides})

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        return self._get_from(self.config, key)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key.

        Raises:
            KeyError: If the key does not name an existing setting
            pydantic.ValidationError: If the value is invalid for the setting
        """
        if self.get(key) is None:
            raise KeyError(key)

        keys = key.split(".")
        config_dict = self.config.model_dump()
        current = config_dict
        for k in keys[:-1]:
            current = current[k]
        current[keys[-1]] = value

        self._config = AppConfig(**config_dict)
        self.save_config()

    def reset(self, key: str | None = None) -> None:
        """Reset configuration (or a single key) to defaults."""
        if key is None:
            self._config = AppConfig()
            self.save_config()
            return

        default_value = self._get_from(AppConfig(), key)
        if default_value is None:
            raise KeyError(key)
        if isinstance(default_value, BaseModel):
            default_value = default_value.model_dump()
        self.set(key, default_value)

    @staticmethod
    def _get_from(config: AppConfig, key: str) -> Any:
        value: Any = config
        for k in key.split("."):
            if isinstance(value, BaseModel):
                value = getattr(value, k, None)
            else:
                return None
        return value

    def load_session(self) -> dict | None:
        """Load the stored session payload, or None if there is none."""
        if not self.session_path.exists():
            return None

        try:
            with open(self.session_path, encoding="utf-8") as f:
                return json.load(f)
        except JSONDecodeError:
            return None

    def save_session(self, session_data: dict) -> None:
        """Persist a session payload with owner-only permissions."""
        self.session_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.session_path, "w", encoding="utf-8") as f:
            json.dump(session_data, f, indent=2, default=str)

        self.session_path.chmod(0o600)

    def clear_session(self) -> None:
        """Forget the stored session."""
        if self.session_path.exists():
            self.session_path.unlink()

    def access_token(self) -> str | None:
        """Access token of the stored session, if any."""
        session = self.load_session()
        if session:
            return session.get("access_token")
        return None


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
