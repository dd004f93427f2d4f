"""Schemas for task comments"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class TaskCommentCreate(BaseModel):
    task_id: int
    content: str
    # Explicit mention targets (employee emails); parsed from content when omitted.
    mentions: Optional[List[str]] = None


class TaskCommentResponse(BaseModel):
    id: int
    task_id: int
    user_email: str
    author_name: str
    author_exists: bool
    content: str
    mentioned_employees: List[str]
    created_at: datetime


class CommentCount(BaseModel):
    task_id: int
    count: int
