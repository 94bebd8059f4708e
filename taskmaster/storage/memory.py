"""In-memory task repository."""

import logging
from threading import Lock
from typing import Dict, Iterable, List, Optional

from ..models.task import Task, TaskDraft
from .base import TaskRepository, build_task, replace_task

logger = logging.getLogger(__name__)


class InMemoryTaskRepository(TaskRepository):
    """Repository keeping tasks in a dict, in insertion order.

    Every change builds the next state as a new dict and hands it to
    ``_commit`` while the lock is held. Subclasses persist the state there
    and raise to leave the current state untouched.
    """

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        """Initialize the repository.

        Args:
            tasks: Optional tasks to seed the store with
        """
        self._tasks: Dict[str, Task] = {}
        self._lock = Lock()  # Thread-safe operations
        for task in tasks or []:
            self._tasks[task.id] = task
        logger.info(f"In-memory task repository initialized with {len(self._tasks)} tasks")

    def _commit(self, tasks: Dict[str, Task]) -> None:
        self._tasks = tasks

    def list(self) -> List[Task]:
        with self._lock:
            return list(self._tasks.values())

    def get(self, task_id: str) -> Optional[Task]:
        with self._lock:
            task = self._tasks.get(task_id)
            if not task:
                logger.debug(f"Task {task_id} not found")
            return task

    def create(self, draft: TaskDraft) -> Task:
        with self._lock:
            task = build_task(draft)
            tasks = dict(self._tasks)
            tasks[task.id] = task
            self._commit(tasks)
            logger.info(f"Created task {task.id}: {task.title}")
            return task

    def update(self, task_id: str, draft: TaskDraft) -> Optional[Task]:
        with self._lock:
            existing = self._tasks.get(task_id)
            if not existing:
                logger.warning(f"Task {task_id} not found for update")
                return None
            task = replace_task(existing, draft)
            tasks = dict(self._tasks)
            tasks[task_id] = task
            self._commit(tasks)
            logger.info(f"Updated task {task_id}: {task.title}")
            return task

    def delete(self, task_id: str) -> bool:
        with self._lock:
            if task_id not in self._tasks:
                logger.warning(f"Task {task_id} not found for deletion")
                return False
            tasks = dict(self._tasks)
            task = tasks.pop(task_id)
            self._commit(tasks)
            logger.info(f"Deleted task {task_id}: {task.title}")
            return True
