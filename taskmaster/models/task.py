"""Domain models for the task management system.

Calendar dates are stored as zero-padded ``YYYY-MM-DD`` strings. Every
comparison between dates in this package is a plain string comparison, which
is only correct because of that fixed-width format, so the validators below
reject anything else.
"""

import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TaskStatus(str, Enum):
    """Task status enumeration.

    Declaration order is the display and sort precedence.
    """
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @property
    def rank(self) -> int:
        """Position of the status in the workflow order."""
        return _STATUS_RANKS[self]

    def __lt__(self, other):
        if not isinstance(other, TaskStatus):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, TaskStatus):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, TaskStatus):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, TaskStatus):
            return NotImplemented
        return self.rank >= other.rank


_STATUS_RANKS = {status: index for index, status in enumerate(TaskStatus)}


def utcnow() -> datetime:
    """Current timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def to_date_string(value: Union[str, date, datetime, None]) -> Optional[str]:
    """Coerce a date-like value into a ``YYYY-MM-DD`` string.

    Full ISO timestamps are truncated to their date part. Empty values
    become None.

    Raises:
        ValueError: If the value is not a valid calendar date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None
    if "T" in text:
        text = text.split("T", 1)[0]
    if not DATE_PATTERN.match(text):
        raise ValueError(f"Date must use the YYYY-MM-DD format, got {value!r}")
    # Rejects impossible dates such as 2024-02-30
    date.fromisoformat(text)
    return text


def split_names(value: Union[str, List[str], None]) -> Optional[List[str]]:
    """Normalize a list of names, accepting a comma-separated string."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    names = [str(name).strip() for name in value]
    names = [name for name in names if name]
    return names or None


class TaskDraft(BaseModel):
    """Task contents as entered in an edit form (no identity or timestamps)."""

    title: str = Field(..., min_length=1, max_length=200, description="Task title")
    description: Optional[str] = Field(None, max_length=2000, description="Task description")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Task status")
    assignees: Optional[List[str]] = Field(None, description="People doing the work")
    stakeholders: Optional[List[str]] = Field(None, description="People interested in the outcome")
    start_date: Optional[str] = Field(None, alias="startDate", description="Start date (YYYY-MM-DD)")
    due_date: Optional[str] = Field(None, alias="dueDate", description="Due date (YYYY-MM-DD)")
    actual_completion_date: Optional[str] = Field(
        None, alias="actualCompletionDate", description="Date the task was completed (YYYY-MM-DD)"
    )
    comments: Optional[str] = Field(None, description="Free-form notes")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    @field_validator("start_date", "due_date", "actual_completion_date", mode="before")
    @classmethod
    def _validate_date(cls, value):
        return to_date_string(value)

    @field_validator("assignees", "stakeholders", mode="before")
    @classmethod
    def _validate_names(cls, value):
        return split_names(value)

    def search_fields(self) -> List[str]:
        """All text values that a free-text search looks at."""
        fields = [self.title, self.description]
        fields.extend(self.assignees or [])
        fields.extend(self.stakeholders or [])
        fields.extend([self.start_date, self.due_date, self.actual_completion_date, self.comments])
        return [field for field in fields if field]


class Task(TaskDraft):
    """Task domain model."""

    id: str = Field(..., alias="_id", min_length=1, description="Opaque unique task identifier")
    created_at: Optional[datetime] = Field(None, alias="createdAt", description="Task creation timestamp")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt", description="Task last update timestamp")

    def to_draft(self) -> TaskDraft:
        """Return the editable part of the task."""
        return TaskDraft.model_validate(self.model_dump(exclude={"id", "created_at", "updated_at"}))

    def to_record(self) -> dict:
        """Serialize to the persisted/wire JSON form (camelCase, ``_id``)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
