"""Task repository contract shared by all storage backends."""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import uuid4

from ..models.task import Task, TaskDraft, utcnow


class RepositoryError(Exception):
    """Raised when a storage backend cannot complete an operation."""


class TaskRepository(ABC):
    """Durable storage of task records.

    The repository is the source of truth for tasks. ``list`` returns a
    snapshot that callers may filter and sort freely.
    """

    @abstractmethod
    def list(self) -> List[Task]:
        """Return every stored task."""

    @abstractmethod
    def get(self, task_id: str) -> Optional[Task]:
        """Return a task by id, or None if it does not exist."""

    @abstractmethod
    def create(self, draft: TaskDraft) -> Task:
        """Store a new task, assigning its id and timestamps."""

    @abstractmethod
    def update(self, task_id: str, draft: TaskDraft) -> Optional[Task]:
        """Replace a task's contents; returns None if it does not exist."""

    @abstractmethod
    def delete(self, task_id: str) -> bool:
        """Delete a task; returns False if it does not exist."""


def new_task_id() -> str:
    return uuid4().hex


def build_task(draft: TaskDraft) -> Task:
    """Create a task record from a draft with a fresh id and timestamps."""
    now = utcnow()
    return Task(id=new_task_id(), created_at=now, updated_at=now, **draft.model_dump())


def replace_task(existing: Task, draft: TaskDraft) -> Task:
    """Full-record replacement keeping identity and creation time."""
    return Task(
        id=existing.id,
        created_at=existing.created_at,
        updated_at=utcnow(),
        **draft.model_dump(),
    )
