"""Task comment model"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON

from hrdesk.database import Base


class TaskComment(Base):
    __tablename__ = "task_comments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    task_id = Column(Integer, index=True, nullable=False)
    user_email = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    mentioned_employees = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
