"""Smart To-Do domain models.

Pydantic models for tasks, sessions and configuration, used throughout the
application for validation, serialization and type safety.
"""

from .config_models import AppConfig
from .core import (
    ChangeEvent,
    ChangeType,
    Priority,
    SortKey,
    StatusFilter,
    Task,
    TaskSummary,
    TaskUpdate,
)
from .session import Session, SessionEvent, SessionState, User

__all__ = [
    # Task models
    "Task",
    "TaskUpdate",
    "TaskSummary",
    "Priority",
    "StatusFilter",
    "SortKey",
    # Change feed
    "ChangeEvent",
    "ChangeType",
    # Session models
    "Session",
    "SessionEvent",
    "SessionState",
    "User",
    # Config models
    "AppConfig",
]
