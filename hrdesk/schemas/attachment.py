"""Schemas for task attachments and stored files"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class TaskAttachmentResponse(BaseModel):
    id: int
    task_id: int
    file_name: str
    file_path: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int
