"""One-time migration of stored task records to the current schema.

Older records used ``id`` instead of ``_id``, a ``completionDate`` field,
comma-separated people strings, full timestamps for calendar dates and
status keys such as ``todo`` or ``in_progress``. Records are migrated when
they are loaded so the rest of the application only sees the current schema.
"""

import logging
from typing import Any, Dict, List, Tuple

from ..models.task import Task, TaskStatus

logger = logging.getLogger(__name__)

RENAMED_FIELDS = {
    "id": "_id",
    "completionDate": "actualCompletionDate",
    "start_date": "startDate",
    "due_date": "dueDate",
    "actual_completion_date": "actualCompletionDate",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

STATUS_ALIASES = {
    "todo": TaskStatus.TODO,
    "to_do": TaskStatus.TODO,
    "to do": TaskStatus.TODO,
    "pending": TaskStatus.TODO,
    "in_progress": TaskStatus.IN_PROGRESS,
    "in-progress": TaskStatus.IN_PROGRESS,
    "in progress": TaskStatus.IN_PROGRESS,
    "doing": TaskStatus.IN_PROGRESS,
    "completed": TaskStatus.COMPLETED,
    "done": TaskStatus.COMPLETED,
}


def migrate_status(value: Any) -> str:
    """Map a legacy status value onto a TaskStatus value."""
    if value is None or value == "":
        return TaskStatus.TODO.value
    if isinstance(value, TaskStatus):
        return value.value
    text = str(value).strip()
    for status in TaskStatus:
        if text == status.value:
            return text
    alias = STATUS_ALIASES.get(text.lower())
    if alias is None:
        raise ValueError(f"Unknown task status: {value!r}")
    return alias.value


def migrate_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``record`` using the current field names and values."""
    migrated = dict(record)

    for old, new in RENAMED_FIELDS.items():
        if old in migrated:
            value = migrated.pop(old)
            migrated.setdefault(new, value)

    if "_id" in migrated and migrated["_id"] is not None:
        migrated["_id"] = str(migrated["_id"])

    migrated["status"] = migrate_status(migrated.get("status"))

    # Completion dates only belong to completed tasks
    if migrated["status"] != TaskStatus.COMPLETED.value:
        migrated.pop("actualCompletionDate", None)

    return migrated


def partition_records(records: List[Any]) -> Tuple[List[Task], List[Any]]:
    """Migrate and validate raw records.

    Args:
        records: Raw JSON objects as stored

    Returns:
        Valid tasks in stored order, and the raw records that could not be read
    """
    tasks, unreadable = [], []
    for index, record in enumerate(records):
        try:
            tasks.append(Task.model_validate(migrate_record(record)))
        except (TypeError, ValueError) as e:
            logger.error(f"Skipping unreadable task record #{index}: {str(e)}")
            unreadable.append(record)
    return tasks, unreadable


def load_records(records: List[Any]) -> List[Task]:
    """Valid tasks from ``records``; unreadable records are logged and skipped."""
    tasks, _ = partition_records(records)
    return tasks
