"""Schemas for user notifications"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from hrdesk.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: int
    recipient: str
    type: NotificationType
    title: str
    content: str
    related_id: Optional[int] = None
    read: bool
    created_at: datetime
    related_item_exists: bool = True

    class Config:
        from_attributes = True


class NotificationList(BaseModel):
    items: List[NotificationResponse]
    unread_count: int


class UnreadCount(BaseModel):
    unread_count: int


class MarkAllReadResult(BaseModel):
    updated: int
    unread_count: int


class NotificationOpenResult(BaseModel):
    notification: NotificationResponse
    target: Optional[str] = None
    message: Optional[str] = None
