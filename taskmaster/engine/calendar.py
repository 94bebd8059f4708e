"""Calendar bucketing for the timeline view.

The timeline shows a fixed run of consecutive days (seven by default). A
task is listed on the day of its start date and on the day of its due date;
when both fall on the same day it is listed once.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from ..models.task import Task
from .sorting import sort_day

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_LENGTH = 7

EMPTY_DAY_MESSAGE = "No tasks for this day."
EMPTY_WINDOW_MESSAGE = "No tasks with start or due dates in this {days}-day period."

DayLike = Union[date, datetime, str]


def to_local_day(value: DayLike) -> date:
    """Normalize a day-like value to a calendar day in local time.

    Naive datetimes are taken as local time. Aware datetimes are converted
    to the local zone first, so an instant late in the evening UTC does not
    land on the next (or previous) local day.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def canonical_day_key(value: DayLike) -> str:
    """``YYYY-MM-DD`` key identifying a local calendar day."""
    return to_local_day(value).isoformat()


def is_today(day_key: str, today: Optional[DayLike] = None) -> bool:
    """Whether ``day_key`` is the current local day."""
    current = to_local_day(today) if today is not None else date.today()
    return day_key == canonical_day_key(current)


def window_days(window_start: DayLike, window_length: int = DEFAULT_WINDOW_LENGTH) -> List[date]:
    """Consecutive local days starting at ``window_start``."""
    start = to_local_day(window_start)
    return [start + timedelta(days=offset) for offset in range(window_length)]


def bucket_tasks(
    tasks: Iterable[Task],
    window_start: DayLike,
    window_length: int = DEFAULT_WINDOW_LENGTH,
) -> Dict[str, List[Task]]:
    """Group tasks by the days of a window.

    Args:
        tasks: Task snapshot, typically already filtered
        window_start: First day of the window
        window_length: Number of days in the window

    Returns:
        Mapping of day key to the tasks starting or due that day, with one
        entry per day of the window in calendar order. Each day is ordered
        by status, then title.
    """
    if window_length < 1:
        raise ValueError("Window length must be at least one day")

    snapshot = list(tasks)
    buckets: Dict[str, List[Task]] = {}

    for day in window_days(window_start, window_length):
        key = canonical_day_key(day)
        seen = set()
        daily = []
        for task in snapshot:
            if task.start_date != key and task.due_date != key:
                continue
            if task.id in seen:
                continue
            seen.add(task.id)
            daily.append(task)
        buckets[key] = sort_day(daily)

    logger.debug(
        f"Bucketed {len(snapshot)} tasks into {window_length} days from {canonical_day_key(window_start)}"
    )
    return buckets


def day_marker(task: Task, day_key: str) -> Optional[str]:
    """Label describing why a task appears on a given day."""
    starts = task.start_date == day_key
    due = task.due_date == day_key
    if starts and due:
        return "Starts & Due"
    if starts:
        return "Starts Today"
    if due:
        return "Due Today"
    return None


class CalendarWindow(BaseModel):
    """A page of consecutive days shown by the timeline.

    Paging moves by a whole window so consecutive pages never overlap.
    """

    start: date = Field(..., description="First day of the window")
    length: int = Field(default=DEFAULT_WINDOW_LENGTH, ge=1, description="Number of days in the window")

    class Config:
        """Pydantic configuration."""
        frozen = True

    @classmethod
    def starting(cls, day: Optional[DayLike] = None, length: int = DEFAULT_WINDOW_LENGTH) -> "CalendarWindow":
        """Window anchored at ``day`` (today when omitted)."""
        anchor = to_local_day(day) if day is not None else date.today()
        return cls(start=anchor, length=length)

    @property
    def end(self) -> date:
        """Last day of the window (inclusive)."""
        return self.start + timedelta(days=self.length - 1)

    def days(self) -> List[date]:
        return window_days(self.start, self.length)

    def keys(self) -> List[str]:
        return [canonical_day_key(day) for day in self.days()]

    def previous(self) -> "CalendarWindow":
        return CalendarWindow(start=self.start - timedelta(days=self.length), length=self.length)

    def next(self) -> "CalendarWindow":
        return CalendarWindow(start=self.start + timedelta(days=self.length), length=self.length)

    def select(self, day: DayLike) -> "CalendarWindow":
        """Re-anchor the window on an arbitrary day."""
        return CalendarWindow(start=to_local_day(day), length=self.length)

    def bucket(self, tasks: Iterable[Task]) -> Dict[str, List[Task]]:
        return bucket_tasks(tasks, self.start, self.length)


class TimelineDay(BaseModel):
    """One column of the timeline view."""

    key: str = Field(..., description="Canonical day key (YYYY-MM-DD)")
    is_today: bool = Field(default=False, description="Whether this day is the current local day")
    tasks: List[Task] = Field(default_factory=list, description="Tasks starting or due this day")
    markers: Dict[str, str] = Field(default_factory=dict, description="Task id to day label")

    @property
    def is_empty(self) -> bool:
        return not self.tasks


class Timeline(BaseModel):
    """Bucketed view of a calendar window."""

    window: CalendarWindow
    days: List[TimelineDay] = Field(default_factory=list)

    @property
    def has_tasks(self) -> bool:
        """False when no day in the window holds a task."""
        return any(day.tasks for day in self.days)

    @property
    def empty_message(self) -> Optional[str]:
        if self.has_tasks:
            return None
        return EMPTY_WINDOW_MESSAGE.format(days=self.window.length)


def build_timeline(
    tasks: Iterable[Task],
    window: CalendarWindow,
    today: Optional[DayLike] = None,
) -> Timeline:
    """Bucket ``tasks`` into ``window`` and annotate each day for display."""
    buckets = window.bucket(tasks)
    days = []
    for key, daily in buckets.items():
        markers = {}
        for task in daily:
            marker = day_marker(task, key)
            if marker:
                markers[task.id] = marker
        days.append(
            TimelineDay(key=key, is_today=is_today(key, today), tasks=daily, markers=markers)
        )
    return Timeline(window=window, days=days)
