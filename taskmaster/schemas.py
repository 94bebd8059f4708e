"""API request/response schemas for the task management system."""

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .models.task import Task, TaskDraft, TaskStatus


# Task-related schemas
class TaskCreate(TaskDraft):
    """Schema for creating a new task."""


class TaskUpdate(TaskDraft):
    """Schema for replacing the contents of an existing task."""


class TaskResponse(Task):
    """Schema for task API responses (camelCase fields, ``_id``)."""

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls.model_validate(task.model_dump())


class TaskStatusUpdate(BaseModel):
    """Schema for changing only the status of a task."""
    status: TaskStatus = Field(..., description="New task status")


class TaskListResponse(BaseModel):
    """Schema for task list API responses."""
    tasks: List[TaskResponse] = Field(..., description="Tasks in workflow order")
    total: int = Field(..., description="Number of tasks returned")


class TaskStatisticsResponse(BaseModel):
    """Schema for task statistics responses."""
    total_tasks: int = Field(..., description="Number of stored tasks")
    status_counts: Dict[str, int] = Field(..., description="Task count per status")
    completion_rate: float = Field(..., description="Percentage of completed tasks")
    overdue_tasks: int = Field(..., description="Open tasks whose due date has passed")


# Timeline-related schemas
class TimelineDayResponse(BaseModel):
    """One day of the timeline view."""
    day: str = Field(..., description="Day key (YYYY-MM-DD)")
    is_today: bool = Field(..., description="Whether this day is today")
    tasks: List[TaskResponse] = Field(default_factory=list, description="Tasks starting or due this day")
    markers: Dict[str, str] = Field(default_factory=dict, description="Task id to day label")
    empty_message: Optional[str] = Field(None, description="Message shown when the day has no tasks")


class TimelineResponse(BaseModel):
    """Schema for timeline view responses."""
    start: date = Field(..., description="First day of the window")
    end: date = Field(..., description="Last day of the window")
    days_count: int = Field(..., description="Number of days in the window")
    previous_start: date = Field(..., description="Start of the previous window")
    next_start: date = Field(..., description="Start of the next window")
    has_tasks: bool = Field(..., description="Whether any day holds a task")
    empty_message: Optional[str] = Field(None, description="Message shown when the window has no tasks")
    days: List[TimelineDayResponse] = Field(default_factory=list, description="Days in calendar order")


# Suggestion-related schemas
class SuggestionRequest(BaseModel):
    """Schema for description suggestion requests."""
    title: str = Field(..., max_length=200, description="Task title to describe")


class SuggestionResponse(BaseModel):
    """Schema for description suggestion responses."""
    title: str = Field(..., description="Task title the suggestion is for")
    description: str = Field(..., description="Suggested description or a diagnostic message")
    is_error: bool = Field(default=False, description="Whether description is a diagnostic message")


# Health check schema
class HealthResponse(BaseModel):
    """Schema for health check responses."""
    status: str = Field(default="healthy", description="Service health status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Health check timestamp")
    version: str = Field(default="1.0.0", description="Application version")
    storage_backend: str = Field(..., description="Configured task repository backend")
    suggestions_enabled: bool = Field(..., description="Whether description suggestions are configured")
