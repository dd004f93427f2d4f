"""Versioned HR document model"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint

from hrdesk.database import Base


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("document_name", "version_number", name="uq_document_version"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    document_name = Column(String(255), index=True, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=False)
    storage_path = Column(String(1024), nullable=False)
    file_type = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)
    version_number = Column(Integer, default=1, nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
