"""Configuration models for Smart To-Do."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class BackendConfig(BaseModel):
    """Hosted backend connection settings."""

    url: str = Field(default="http://localhost:54321")
    anon_key: str = Field(default="", description="Public (anon) API key")
    timeout: float = Field(default=30.0, gt=0)
    retry: int = Field(default=3, ge=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure the URL is non-empty and has no trailing slash."""
        if not v or not v.strip():
            raise ValueError("url cannot be empty")
        return v.strip().rstrip("/")


class SyncConfig(BaseModel):
    """Task synchronizer settings."""

    timeout: float = Field(default=15.0, gt=0, description="Seconds per remote call")


class RealtimeConfig(BaseModel):
    """Change feed settings."""

    enabled: bool = Field(default=True)
    poll_interval: float = Field(default=5.0, gt=0)


class OutputConfig(BaseModel):
    """Output configuration."""

    format: str = Field(default="pretty")
    color: bool = Field(default=True)
    compact: bool = Field(default=False)


class AppConfig(BaseModel):
    """Main Smart To-Do configuration."""

    backend: BackendConfig = Field(default_factory=BackendConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
