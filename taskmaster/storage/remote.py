"""Task repository backed by a remote document store over HTTP."""

import logging
from typing import Any, List, Optional

import httpx

from ..models.task import Task, TaskDraft
from ..utils.logging import TimedOperation
from .base import RepositoryError, TaskRepository
from .migrations import load_records, migrate_record

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract a displayable message from an error response."""
    message = f"HTTP error! status: {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return message
    if isinstance(data, dict):
        for key in ("error", "message", "detail"):
            if data.get(key):
                return str(data[key])
    return message


class RemoteTaskRepository(TaskRepository):
    """Repository talking to a remote task store.

    The store exposes ``GET/POST /tasks/`` and ``GET/PUT/DELETE /tasks/{id}``
    and assigns ids and timestamps itself.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the repository.

        Args:
            base_url: Root URL of the remote store
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (used by tests)
        """
        if not base_url and client is None:
            raise ValueError("Remote task store URL is not configured")
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        logger.info(f"Remote task repository using {self._client.base_url}")

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            with TimedOperation(f"{method} {url}", __name__):
                response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Remote task store unreachable: {str(e)}")
            raise RepositoryError(f"Could not reach the task store: {str(e)}") from e
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_error:
            message = _error_message(response)
            logger.error(f"Remote task store error {response.status_code}: {message}")
            raise RepositoryError(message)

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Remote task store sent a non-JSON body: {str(e)}")
            raise RepositoryError("Task store returned a response that is not JSON") from e

    def _parse_task(self, data: Any) -> Task:
        try:
            return Task.model_validate(migrate_record(data))
        except (TypeError, ValueError) as e:
            raise RepositoryError(f"Task store returned an invalid task: {str(e)}") from e

    def list(self) -> List[Task]:
        response = self._request("GET", "/tasks/")
        self._raise_for_status(response)
        data = self._json(response)
        if isinstance(data, dict):
            data = data.get("tasks", [])
        if not isinstance(data, list):
            raise RepositoryError("Task store returned an unexpected task list")
        return load_records(data)

    def get(self, task_id: str) -> Optional[Task]:
        response = self._request("GET", f"/tasks/{task_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return self._parse_task(self._json(response))

    def create(self, draft: TaskDraft) -> Task:
        payload = draft.model_dump(mode="json", by_alias=True, exclude_none=True)
        response = self._request("POST", "/tasks/", json=payload)
        self._raise_for_status(response)
        task = self._parse_task(self._json(response))
        logger.info(f"Created remote task {task.id}: {task.title}")
        return task

    def update(self, task_id: str, draft: TaskDraft) -> Optional[Task]:
        payload = draft.model_dump(mode="json", by_alias=True, exclude_none=True)
        response = self._request("PUT", f"/tasks/{task_id}", json=payload)
        if response.status_code == 404:
            logger.warning(f"Remote task {task_id} not found for update")
            return None
        self._raise_for_status(response)
        return self._parse_task(self._json(response))

    def delete(self, task_id: str) -> bool:
        response = self._request("DELETE", f"/tasks/{task_id}")
        if response.status_code == 404:
            logger.warning(f"Remote task {task_id} not found for deletion")
            return False
        self._raise_for_status(response)
        return True
