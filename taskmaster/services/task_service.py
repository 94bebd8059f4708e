"""Task service for CRUD operations and task views."""

import logging
from datetime import date
from typing import Callable, Dict, List, Optional

from ..engine.calendar import CalendarWindow, Timeline, build_timeline
from ..engine.filtering import FilterSpec, filter_tasks
from ..engine.sorting import sort_tasks
from ..models.task import Task, TaskDraft, TaskStatus
from ..storage.base import TaskRepository

logger = logging.getLogger(__name__)


class TaskValidationError(ValueError):
    """Raised when a task draft breaks an entry rule."""


def normalize_draft(draft: TaskDraft) -> TaskDraft:
    """Trim text fields and turn empty strings into missing values."""

    def clean(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    return draft.model_copy(update={
        "title": draft.title.strip(),
        "description": clean(draft.description),
        "comments": clean(draft.comments),
    })


def apply_completion_date(
    draft: TaskDraft,
    today: date,
    previous: Optional[Task] = None,
) -> TaskDraft:
    """Keep the completion date consistent with the status.

    A completed task keeps the completion date it already has (from the
    draft, else from the stored task) and gets ``today`` otherwise. Any
    other status clears the completion date.
    """
    if draft.status != TaskStatus.COMPLETED:
        return draft.model_copy(update={"actual_completion_date": None})

    completion_date = draft.actual_completion_date
    if not completion_date and previous is not None and previous.status == TaskStatus.COMPLETED:
        completion_date = previous.actual_completion_date
    if not completion_date:
        completion_date = today.isoformat()
    return draft.model_copy(update={"actual_completion_date": completion_date})


class TaskService:
    """Service for task CRUD operations on top of a task repository."""

    def __init__(
        self,
        repository: TaskRepository,
        require_due_date: bool = True,
        clock: Optional[Callable[[], date]] = None,
    ):
        """Initialize the task service.

        Args:
            repository: Storage backend holding the tasks
            require_due_date: Reject new tasks without a due date
            clock: Returns the current local date (defaults to date.today)
        """
        self.repository = repository
        self.require_due_date = require_due_date
        self._clock = clock or date.today
        logger.info(f"Task service initialized with {type(repository).__name__}")

    def today(self) -> date:
        return self._clock()

    def validate_draft(self, draft: TaskDraft, creating: bool = False) -> None:
        """Check the entry rules for a draft.

        Raises:
            TaskValidationError: If the draft is not acceptable
        """
        if not draft.title or not draft.title.strip():
            raise TaskValidationError("Task title cannot be empty")
        if creating and self.require_due_date and not draft.due_date:
            raise TaskValidationError("Task due date is required")
        if draft.start_date and draft.due_date and draft.start_date > draft.due_date:
            raise TaskValidationError("Start date cannot be after due date")

    def create_task(self, draft: TaskDraft) -> Task:
        """Create a new task.

        Args:
            draft: Task contents

        Returns:
            Created task

        Raises:
            TaskValidationError: If the draft is invalid
        """
        self.validate_draft(draft, creating=True)
        draft = apply_completion_date(normalize_draft(draft), self.today())
        task = self.repository.create(draft)
        logger.info(f"Created task {task.id}: {task.title}")
        return task

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by ID.

        Args:
            task_id: Task ID

        Returns:
            Task if found, None otherwise
        """
        task = self.repository.get(task_id)
        if task:
            logger.debug(f"Retrieved task {task_id}: {task.title}")
        else:
            logger.debug(f"Task {task_id} not found")
        return task

    def update_task(self, task_id: str, draft: TaskDraft) -> Optional[Task]:
        """Replace a task's contents with ``draft``.

        Args:
            task_id: Task ID
            draft: Complete new task contents

        Returns:
            Updated task if found, None otherwise

        Raises:
            TaskValidationError: If the draft is invalid
        """
        self.validate_draft(draft)
        previous = self.repository.get(task_id)
        if previous is None:
            logger.warning(f"Task {task_id} not found for update")
            return None

        draft = apply_completion_date(normalize_draft(draft), self.today(), previous)
        task = self.repository.update(task_id, draft)
        if task is not None and previous.status != task.status:
            logger.info(f"Updated task {task_id} status: {previous.status.value} -> {task.status.value}")
        return task

    def update_task_status(self, task_id: str, status: TaskStatus) -> Optional[Task]:
        """Change only the status of a task.

        Args:
            task_id: Task ID
            status: New status

        Returns:
            Updated task if found, None otherwise
        """
        task = self.repository.get(task_id)
        if task is None:
            logger.warning(f"Task {task_id} not found for status update")
            return None
        draft = task.to_draft().model_copy(update={"status": status})
        return self.update_task(task_id, draft)

    def delete_task(self, task_id: str) -> bool:
        """Delete a task.

        Args:
            task_id: Task ID

        Returns:
            True if task was deleted, False if not found
        """
        return self.repository.delete(task_id)

    def list_tasks(self) -> List[Task]:
        """Snapshot of every stored task in repository order."""
        return self.repository.list()

    def query(self, spec: Optional[FilterSpec] = None) -> List[Task]:
        """Filtered tasks in workflow order (the list view).

        Args:
            spec: Filter specification; None keeps every task

        Returns:
            Sorted matching tasks
        """
        snapshot = self.list_tasks()
        tasks = sort_tasks(filter_tasks(snapshot, spec))
        logger.debug(f"Query matched {len(tasks)} of {len(snapshot)} tasks")
        return tasks

    def timeline(
        self,
        window: CalendarWindow,
        spec: Optional[FilterSpec] = None,
    ) -> Timeline:
        """Filtered tasks bucketed into a calendar window (the timeline view).

        Args:
            window: Days to show
            spec: Filter specification applied before bucketing

        Returns:
            Timeline with one entry per day of the window
        """
        tasks = filter_tasks(self.list_tasks(), spec)
        return build_timeline(tasks, window, today=self.today())

    def get_tasks_by_status(self) -> Dict[TaskStatus, int]:
        """Get task counts by status.

        Returns:
            Dictionary mapping status to count
        """
        counts = {status: 0 for status in TaskStatus}
        for task in self.list_tasks():
            counts[task.status] += 1
        return counts

    def get_statistics(self) -> Dict[str, object]:
        """Get task statistics.

        Returns:
            Dictionary containing various statistics
        """
        tasks = self.list_tasks()
        total_tasks = len(tasks)
        counts = self.get_tasks_by_status()

        completed_count = counts[TaskStatus.COMPLETED]
        completion_rate = (completed_count / total_tasks * 100) if total_tasks > 0 else 0

        today = self.today().isoformat()
        overdue = sum(
            1 for task in tasks
            if task.status != TaskStatus.COMPLETED and task.due_date and task.due_date < today
        )

        return {
            'total_tasks': total_tasks,
            'status_counts': {status.value: count for status, count in counts.items()},
            'completion_rate': round(completion_rate, 2),
            'overdue_tasks': overdue,
        }


# Global task service instance - will be initialized during app startup
_task_service: Optional[TaskService] = None


def get_task_service() -> Optional[TaskService]:
    """Get the global task service instance.

    Returns:
        Task service instance or None if not initialized
    """
    return _task_service


def initialize_task_service(repository: TaskRepository, require_due_date: bool = True) -> TaskService:
    """Initialize the global task service instance.

    Args:
        repository: Storage backend for the service
        require_due_date: Reject new tasks without a due date

    Returns:
        Initialized task service
    """
    global _task_service
    _task_service = TaskService(repository, require_due_date=require_due_date)
    return _task_service
