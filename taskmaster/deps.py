"""Dependency injection helpers for FastAPI."""

from functools import lru_cache

from fastapi import HTTPException, Request, status

from .config import Settings, settings
from .services import suggestion_service, task_service
from .services.suggestion_service import DescriptionSuggestionClient
from .services.task_service import TaskService
from .storage.base import TaskRepository
from .storage.local import JsonFileTaskRepository
from .storage.memory import InMemoryTaskRepository
from .storage.remote import RemoteTaskRepository


@lru_cache()
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return settings


def get_app_settings(request: Request) -> Settings:
    """Get the settings the running application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def build_repository(settings: Settings) -> TaskRepository:
    """Create the task repository selected by ``storage_backend``."""
    if settings.storage_backend == "remote":
        return RemoteTaskRepository(settings.remote_base_url, timeout=settings.remote_timeout)
    if settings.storage_backend == "local":
        return JsonFileTaskRepository(settings.tasks_file)
    return InMemoryTaskRepository()


def get_task_service() -> TaskService:
    """Get the task service initialized at startup."""
    service = task_service.get_task_service()
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Task service not initialized"
        )
    return service


def get_suggestion_client() -> DescriptionSuggestionClient:
    """Get the description suggestion client initialized at startup."""
    client = suggestion_service.get_suggestion_client()
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Suggestion client not initialized"
        )
    return client
