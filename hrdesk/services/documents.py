"""Versioned HR documents."""
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hrdesk.models import Document, Employee
from hrdesk.services.attachments import storage_key
from hrdesk.services.storage import DOCUMENTS_BUCKET, LocalObjectStorage, split_extension

logger = logging.getLogger(__name__)


def versioned_file_name(file_name: str, version: int) -> str:
    base, extension = split_extension(file_name)
    return f"{base}_v{version}{extension}"


def next_version(db: Session, document_name: str) -> int:
    current = db.query(func.max(Document.version_number)).filter(Document.document_name == document_name).scalar()
    return (current or 0) + 1


def store_document_version(
    db: Session,
    storage: LocalObjectStorage,
    document_name: str,
    file_name: str,
    data: bytes,
    content_type: Optional[str],
    uploader: Employee,
    notes: Optional[str] = None,
) -> Document:
    """Store a new version of ``document_name``; the first upload is version 1."""
    version = next_version(db, document_name)
    stored_name = versioned_file_name(file_name, version)
    stored = storage.upload(DOCUMENTS_BUCKET, storage_key(uploader.id, stored_name), data, content_type)

    document = Document(
        document_name=document_name,
        file_name=stored_name,
        file_path=stored.public_url,
        storage_path=stored.path,
        file_type=content_type,
        file_size=stored.size,
        version_number=version,
        notes=notes,
        created_by=uploader.email,
    )
    db.add(document)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        storage.delete(DOCUMENTS_BUCKET, [stored.path])
        raise
    db.refresh(document)
    logger.info("Stored %s version %d", document_name, version)
    return document


def latest_documents(db: Session, search: Optional[str] = None) -> List[Document]:
    """Latest version of every document, newest upload first."""
    latest = (
        db.query(Document.document_name, func.max(Document.version_number).label("version"))
        .group_by(Document.document_name)
        .subquery()
    )
    query = db.query(Document).join(
        latest,
        (Document.document_name == latest.c.document_name) & (Document.version_number == latest.c.version),
    )
    term = (search or "").strip().lower()
    if term:
        query = query.filter(func.lower(Document.document_name).contains(term, autoescape=True))
    return query.order_by(Document.created_at.desc(), Document.id.desc()).all()


def document_versions(db: Session, document_name: str) -> List[Document]:
    return (
        db.query(Document)
        .filter(Document.document_name == document_name)
        .order_by(Document.version_number.desc())
        .all()
    )


def delete_document(db: Session, storage: LocalObjectStorage, document: Document) -> None:
    storage_path = document.storage_path
    db.delete(document)
    db.commit()
    storage.delete(DOCUMENTS_BUCKET, [storage_path])
