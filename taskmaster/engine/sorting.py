"""Workflow ordering for task lists.

Active work comes before completed work, and within a status the most
urgent due date comes first:

1. status rank (To Do, In Progress, Completed)
2. due date ascending, tasks with a due date before tasks without
3. for two completed tasks without due dates, completion date ascending,
   tasks with a completion date first
4. creation time descending (newest first)
"""

from datetime import timezone
from functools import cmp_to_key
from typing import Iterable, List, Optional

from ..models.task import Task, TaskStatus


def _compare_optional(left: Optional[str], right: Optional[str]) -> int:
    """Ascending comparison where a present value beats a missing one.

    Returns 0 only when both values are missing or equal.
    """
    if left and right:
        return (left > right) - (left < right)
    if left:
        return -1
    if right:
        return 1
    return 0


def _created_timestamp(task: Task) -> Optional[float]:
    created_at = task.created_at
    if created_at is None:
        return None
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at.timestamp()


def compare_tasks(a: Task, b: Task) -> int:
    """Three-way comparison implementing the list ordering."""
    if a.status.rank != b.status.rank:
        return a.status.rank - b.status.rank

    if a.due_date or b.due_date:
        result = _compare_optional(a.due_date, b.due_date)
        if result:
            return result
        # Equal due dates fall through to the creation time tie-break
    elif a.status == TaskStatus.COMPLETED and b.status == TaskStatus.COMPLETED:
        result = _compare_optional(a.actual_completion_date, b.actual_completion_date)
        if result:
            return result

    a_created = _created_timestamp(a)
    b_created = _created_timestamp(b)
    if a_created is not None and b_created is not None:
        return (b_created > a_created) - (b_created < a_created)
    if a_created is not None:
        return -1
    if b_created is not None:
        return 1
    return 0


task_sort_key = cmp_to_key(compare_tasks)


def sort_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Return a new list with ``tasks`` in workflow order."""
    return sorted(tasks, key=task_sort_key)


def day_sort_key(task: Task):
    """Ordering inside a single calendar day: status rank, then title."""
    return (task.status.rank, task.title.casefold(), task.title)


def sort_day(tasks: Iterable[Task]) -> List[Task]:
    return sorted(tasks, key=day_sort_key)

