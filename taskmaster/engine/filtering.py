"""Task filtering for the list and timeline views.

Every active filter axis must match (logical AND). Filtering never reorders
or copies tasks: the result is the input sequence with non-matching tasks
left out.
"""

from typing import Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..models.task import Task, TaskStatus, to_date_string

ALL_STATUSES = "ALL"


class DateRange(BaseModel):
    """Inclusive range over ``YYYY-MM-DD`` strings; either bound may be open."""

    from_: Optional[str] = Field(None, alias="from", description="Lower bound (inclusive)")
    to: Optional[str] = Field(None, description="Upper bound (inclusive)")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
        frozen = True

    @field_validator("from_", "to", mode="before")
    @classmethod
    def _validate_bound(cls, value):
        return to_date_string(value)

    @property
    def is_set(self) -> bool:
        """Whether at least one bound restricts the range."""
        return bool(self.from_ or self.to)

    def matches(self, value: Optional[str]) -> bool:
        """Check a task date against the range.

        An unset range matches everything, including missing dates. Once
        either bound is set, a missing date never matches.
        """
        if not self.is_set:
            return True
        if not value:
            return False
        if self.from_ and value < self.from_:
            return False
        if self.to and value > self.to:
            return False
        return True


class FilterSpec(BaseModel):
    """Declarative set of predicates applied to a task snapshot."""

    search_term: str = Field(default="", description="Case-insensitive substring searched across task fields")
    status: Union[TaskStatus, Literal["ALL"], None] = Field(
        default=None, description="Status to keep, or ALL/None for every status"
    )
    start_date_range: DateRange = Field(default_factory=DateRange)
    completion_date_range: DateRange = Field(default_factory=DateRange)

    class Config:
        """Pydantic configuration."""
        frozen = True

    @field_validator("search_term", mode="before")
    @classmethod
    def _validate_search_term(cls, value):
        return value or ""


def matches_search(task: Task, search_term: str) -> bool:
    """Return True if any searchable field contains the term."""
    if not search_term:
        return True
    needle = search_term.lower()
    return any(needle in field.lower() for field in task.search_fields())


def matches_status(task: Task, status: Union[TaskStatus, str, None]) -> bool:
    if status is None or status == ALL_STATUSES:
        return True
    return task.status == status


def matches(task: Task, spec: FilterSpec) -> bool:
    """Evaluate every filter axis of ``spec`` against one task."""
    return (
        matches_search(task, spec.search_term)
        and matches_status(task, spec.status)
        and spec.start_date_range.matches(task.start_date)
        and spec.completion_date_range.matches(task.actual_completion_date)
    )


def filter_tasks(tasks: Iterable[Task], spec: Optional[FilterSpec] = None) -> List[Task]:
    """Return the tasks matching ``spec``, in their original order.

    Args:
        tasks: Task snapshot
        spec: Filter specification; None applies no restriction

    Returns:
        New list holding the matching tasks
    """
    if spec is None:
        return list(tasks)
    return [task for task in tasks if matches(task, spec)]
