"""Ports for the external collaborators of Smart To-Do.

Abstract base classes describing what the client needs from the hosted
backend. Implementations (adapters) live in ``smarttodo_cli.adapters``.
"""

from .repository import (
    ChangeCallback,
    SessionChangeCallback,
    SessionProvider,
    Subscription,
    TaskStore,
)

__all__ = [
    "TaskStore",
    "Subscription",
    "SessionProvider",
    "ChangeCallback",
    "SessionChangeCallback",
]
