"""Task data models."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Priority(str, Enum):
    """Task priority level."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StatusFilter(str, Enum):
    """Completion-status bucket used by list views."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class SortKey(str, Enum):
    """Ordering applied to list views."""

    CREATED = "created"
    DEADLINE = "deadline"
    PRIORITY = "priority"
    TITLE = "title"


class Task(BaseModel):
    """Task model mirroring a row of the remote ``tasks`` table.

    Attributes:
        id: Client-generated UUID, immutable
        owner: Id of the user who created the task (``user_id`` on the wire)
        title: Non-empty task title
        description: Free text, possibly empty
        completed: Completion status
        priority: high / medium / low
        deadline: Optional calendar date
        created_at: Server-assigned creation time (``inserted_at`` on the wire);
            unknown until the first reload after an optimistic create
        updated_at: Time of the last mutation
    """

    model_config = {"populate_by_name": True}

    id: str
    owner: str = Field(alias="user_id")
    title: str
    description: str = ""
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    deadline: date | None = None
    created_at: datetime | None = Field(default=None, alias="inserted_at")
    updated_at: datetime | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("priority", mode="before")
    @classmethod
    def _null_priority(cls, v: Any) -> Any:
        return Priority.MEDIUM if v in (None, "") else v

    @field_validator("deadline", mode="before")
    @classmethod
    def _empty_deadline(cls, v: Any) -> Any:
        return None if v == "" else v

    def to_record(self) -> dict[str, Any]:
        """Serialize for an insert, leaving server-assigned columns to the backend."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"created_at", "updated_at"},
        )


class TaskUpdate(BaseModel):
    """Model for updating an existing task.

    All fields are optional - only explicitly provided fields are applied,
    so ``TaskUpdate(deadline=None)`` clears the deadline.
    """

    title: str | None = None
    description: str | None = None
    completed: bool | None = None
    priority: Priority | None = None
    deadline: date | None = None

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set on this update, as Python values."""
        return self.model_dump(exclude_unset=True)

    def to_patch(self) -> dict[str, Any]:
        """Fields explicitly set on this update, JSON-ready for the wire."""
        return self.model_dump(mode="json", exclude_unset=True)


class TaskSummary(BaseModel):
    """Counts shown in the overview panel."""

    total: int = 0
    completed: int = 0
    active: int = 0


class ChangeType(str, Enum):
    """Kind of change reported by the change feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """A single change observed on a remote table."""

    type: ChangeType
    table: str
    record_id: str
