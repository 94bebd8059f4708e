"""Shared test fixtures and configuration for the test suite."""

import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).parent.parent))

from taskmaster.config import Settings
from taskmaster.main import create_app
from taskmaster.models.task import Task, TaskStatus
from taskmaster.services.task_service import TaskService
from taskmaster.storage.memory import InMemoryTaskRepository

TODAY = date(2024, 6, 5)
BASE_TIME = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings with temporary directories."""
    return Settings(
        openai_api_key=None,
        storage_backend="memory",
        tasks_file=tmp_path / "tasks.json",
        log_dir=tmp_path / "logs",
        log_level="DEBUG",
        environment="test",
    )


@pytest.fixture
def make_task():
    """Factory building tasks with a fresh id and increasing creation times."""
    counter = {"n": 0}

    def _make(title: str = "Task", **fields) -> Task:
        counter["n"] += 1
        fields.setdefault("id", uuid4().hex)
        fields.setdefault("created_at", BASE_TIME + timedelta(minutes=counter["n"]))
        fields.setdefault("status", TaskStatus.TODO)
        return Task(title=title, **fields)

    return _make


@pytest.fixture
def repository() -> InMemoryTaskRepository:
    """Create an empty in-memory repository."""
    return InMemoryTaskRepository()


@pytest.fixture
def task_service(repository) -> TaskService:
    """Create a task service whose clock is fixed at TODAY."""
    return TaskService(repository, clock=lambda: TODAY)


@pytest.fixture
def client(test_settings) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def mock_llm():
    """Chat model double returning a fixed suggestion."""
    llm = MagicMock()
    llm.invoke.return_value = MagicMock(content="  Draft the quarterly report and share it with finance.  ")
    llm.ainvoke = AsyncMock(return_value=MagicMock(content="Draft the quarterly report and share it with finance."))
    return llm


# Test data fixtures
@pytest.fixture
def sample_task_data():
    """Sample task payload in the wire format."""
    return {
        "title": "Review quarterly report",
        "description": "Check the numbers before the board meeting",
        "status": "To Do",
        "assignees": ["Alice Smith", "Bob"],
        "startDate": "2024-06-03",
        "dueDate": "2024-06-07",
    }
