"""Session and user models."""

from __future__ import annotations

import time
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


class User(BaseModel):
    """Authenticated identity as reported by the auth service."""

    model_config = {"extra": "ignore"}

    id: str
    email: str | None = None
    created_at: datetime | None = None


class Session(BaseModel):
    """Opaque handle to a signed-in identity.

    The client never inspects the tokens; it only stores them, sends the
    access token with requests and asks the provider to refresh it.
    """

    model_config = {"extra": "ignore"}

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_at: int | None = None
    user: User

    @classmethod
    def from_auth_response(cls, data: dict[str, Any]) -> Session:
        """Build a session from a token endpoint response."""
        payload = dict(data)
        if payload.get("expires_at") is None and payload.get("expires_in"):
            payload["expires_at"] = int(time.time()) + int(payload["expires_in"])
        return cls.model_validate(payload)

    def is_expired(self, leeway: int = 60) -> bool:
        """Whether the access token is expired (or will be within *leeway* seconds)."""
        if self.expires_at is None:
            return False
        return time.time() + leeway >= self.expires_at


class SessionEvent(str, Enum):
    """Notification kinds pushed by the session provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class SessionState(str, Enum):
    """States of the session lifecycle."""

    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
