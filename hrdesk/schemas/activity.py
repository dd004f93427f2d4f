"""Schemas for the recent activity feed"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel


class ActivityItem(BaseModel):
    id: str
    user_name: str
    action: str
    subject: str
    timestamp: datetime
    time_ago: str
    related_id: Optional[int] = None
    type: Literal["task", "comment", "notification"]


class ActivityPage(BaseModel):
    items: List[ActivityItem]
    page: int
    per_page: int
    total: int
    total_pages: int
