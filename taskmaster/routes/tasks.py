"""Task management CRUD, list view and timeline routes."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import ValidationError

from ..config import Settings
from ..deps import get_app_settings, get_task_service
from ..engine.calendar import EMPTY_DAY_MESSAGE, CalendarWindow
from ..engine.filtering import DateRange, FilterSpec
from ..schemas import (
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskStatisticsResponse,
    TaskStatusUpdate,
    TaskUpdate,
    TimelineDayResponse,
    TimelineResponse,
)
from ..services.task_service import TaskService, TaskValidationError
from ..storage.base import RepositoryError

logger = logging.getLogger(__name__)

# Repository calls block, so handlers are plain functions run in the threadpool
router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_filter_spec(
    q: Optional[str] = Query(None, description="Search term"),
    status_filter: Optional[str] = Query(None, alias="status", description="Status value or ALL"),
    start_from: Optional[str] = Query(None, description="Earliest start date (YYYY-MM-DD)"),
    start_to: Optional[str] = Query(None, description="Latest start date (YYYY-MM-DD)"),
    completed_from: Optional[str] = Query(None, description="Earliest completion date (YYYY-MM-DD)"),
    completed_to: Optional[str] = Query(None, description="Latest completion date (YYYY-MM-DD)"),
) -> FilterSpec:
    """Build a filter specification from query parameters.

    Raises:
        HTTPException: If a status or date parameter is malformed
    """
    try:
        return FilterSpec(
            search_term=q or "",
            status=status_filter or None,
            start_date_range=DateRange(from_=start_from, to=start_to),
            completion_date_range=DateRange(from_=completed_from, to=completed_to),
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid filter: {e.errors()[0]['msg']}"
        )


def _repository_unavailable(e: RepositoryError) -> HTTPException:
    logger.error(f"Task repository error: {str(e)}")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Create a new task.

    Raises:
        HTTPException: If the task is invalid or cannot be stored
    """
    try:
        logger.info(f"Creating new task: {task_data.title}")
        task = task_service.create_task(task_data)
        return TaskResponse.from_task(task)
    except TaskValidationError as e:
        logger.error(f"Validation error creating task: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RepositoryError as e:
        raise _repository_unavailable(e)


@router.get("/", response_model=TaskListResponse)
def list_tasks(
    spec: FilterSpec = Depends(get_filter_spec),
    task_service: TaskService = Depends(get_task_service)
) -> TaskListResponse:
    """List tasks matching the filters, in workflow order."""
    try:
        logger.debug(f"Listing tasks with filters: {spec}")
        tasks = task_service.query(spec)
    except RepositoryError as e:
        raise _repository_unavailable(e)

    return TaskListResponse(
        tasks=[TaskResponse.from_task(task) for task in tasks],
        total=len(tasks)
    )


@router.get("/timeline/", response_model=TimelineResponse)
def get_timeline(
    start: Optional[date] = Query(None, description="First day of the window (defaults to today)"),
    days: Optional[int] = Query(None, ge=1, le=31, description="Number of days to show"),
    spec: FilterSpec = Depends(get_filter_spec),
    task_service: TaskService = Depends(get_task_service),
    settings: Settings = Depends(get_app_settings),
) -> TimelineResponse:
    """Bucket the filtered tasks into consecutive days."""
    window = CalendarWindow.starting(start or task_service.today(), days or settings.timeline_days)
    try:
        timeline = task_service.timeline(window, spec)
    except RepositoryError as e:
        raise _repository_unavailable(e)

    return TimelineResponse(
        start=window.start,
        end=window.end,
        days_count=window.length,
        previous_start=window.previous().start,
        next_start=window.next().start,
        has_tasks=timeline.has_tasks,
        empty_message=timeline.empty_message,
        days=[
            TimelineDayResponse(
                day=day.key,
                is_today=day.is_today,
                tasks=[TaskResponse.from_task(task) for task in day.tasks],
                markers=day.markers,
                empty_message=EMPTY_DAY_MESSAGE if day.is_empty else None,
            )
            for day in timeline.days
        ],
    )


@router.get("/stats/", response_model=TaskStatisticsResponse)
def get_task_statistics(
    task_service: TaskService = Depends(get_task_service)
) -> TaskStatisticsResponse:
    """Get task statistics."""
    try:
        return TaskStatisticsResponse(**task_service.get_statistics())
    except RepositoryError as e:
        raise _repository_unavailable(e)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Get a specific task by ID.

    Raises:
        HTTPException: If task not found
    """
    try:
        task = task_service.get_task(task_id)
    except RepositoryError as e:
        raise _repository_unavailable(e)

    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found"
        )
    return TaskResponse.from_task(task)


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    task_data: TaskUpdate,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Replace a task with the submitted contents.

    Raises:
        HTTPException: If task not found or the contents are invalid
    """
    try:
        logger.info(f"Updating task: {task_id}")
        task = task_service.update_task(task_id, task_data)
    except TaskValidationError as e:
        logger.error(f"Validation error updating task {task_id}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RepositoryError as e:
        raise _repository_unavailable(e)

    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found"
        )
    return TaskResponse.from_task(task)


@router.patch("/{task_id}/status", response_model=TaskResponse)
def update_task_status(
    task_id: str,
    status_data: TaskStatusUpdate,
    task_service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """Move a task to another status, keeping the rest of it.

    Raises:
        HTTPException: If task not found
    """
    try:
        logger.info(f"Updating task {task_id} status to {status_data.status.value}")
        task = task_service.update_task_status(task_id, status_data.status)
    except TaskValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RepositoryError as e:
        raise _repository_unavailable(e)

    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found"
        )
    return TaskResponse.from_task(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
) -> Response:
    """Delete a task.

    Raises:
        HTTPException: If task not found
    """
    try:
        logger.info(f"Deleting task: {task_id}")
        deleted = task_service.delete_task(task_id)
    except RepositoryError as e:
        raise _repository_unavailable(e)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
