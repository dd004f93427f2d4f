"""Schemas for tasks"""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from hrdesk.models.task import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    # Required fields are checked by the service so the caller gets one message.
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    assignee: Optional[int] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[TaskPriority] = None
    assignee: Optional[int] = None


class TaskStatusUpdate(BaseModel):
    """Explicit status, or ``None`` to advance pending -> in-progress -> completed -> pending."""

    status: Optional[TaskStatus] = None


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    due_date: date
    priority: TaskPriority
    status: TaskStatus
    creator: str
    assignee: Optional[int] = None
    assignee_name: Optional[str] = None
    assignee_exists: bool = True
    created_at: datetime
    updated_at: datetime


class TaskStats(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
