"""Notification model"""
import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum as SQLEnum

from hrdesk.database import Base


class NotificationType(str, enum.Enum):
    TASK_ASSIGNMENT = "task_assignment"
    TASK_UPDATE = "task_update"
    MENTION = "mention"
    OTHER = "other"


# Types whose related_id points at a task.
TASK_LINKED_TYPES = frozenset(
    {NotificationType.TASK_ASSIGNMENT, NotificationType.TASK_UPDATE, NotificationType.MENTION}
)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    recipient = Column(String(255), index=True, nullable=False)
    type = Column(
        SQLEnum(NotificationType, values_callable=lambda e: [m.value for m in e]),
        default=NotificationType.OTHER,
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    related_id = Column(Integer, index=True, nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
