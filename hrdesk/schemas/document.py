"""Schemas for versioned documents"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DocumentResponse(BaseModel):
    id: int
    document_name: str
    file_name: str
    file_path: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    version_number: int
    notes: Optional[str] = None
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True
