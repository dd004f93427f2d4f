"""Versioned document endpoints (administrators only)"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import require_admin
from hrdesk.models import Document, Employee
from hrdesk.schemas import DocumentResponse, SignedUrlResponse
from hrdesk.services import documents as document_service
from hrdesk.services.storage import DOCUMENTS_BUCKET, LocalObjectStorage, StorageError, get_storage, split_extension

router = APIRouter()


def _load_document(db: Session, document_id: int) -> Document:
    document = db.query(Document).filter(Document.id == document_id).first()
    if not document:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return document


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
def upload_document(
    file: UploadFile = File(...),
    document_name: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    """Upload a document; re-uploading under the same name adds a version."""
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A file name is required")

    name = (document_name or "").strip() or split_extension(file.filename)[0]
    try:
        return document_service.store_document_version(
            db,
            storage,
            document_name=name,
            file_name=file.filename,
            data=file.file.read(),
            content_type=file.content_type,
            uploader=current_employee,
            notes=notes,
        )
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.get("", response_model=List[DocumentResponse])
def list_documents(
    search: Optional[str] = Query(None, description="Substring of the document name"),
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return document_service.latest_documents(db, search)


@router.get("/versions/{document_name}", response_model=List[DocumentResponse])
def list_document_versions(
    document_name: str,
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
):
    versions = document_service.document_versions(db, document_name)
    if not versions:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return versions


@router.get("/{document_id}/signed-url", response_model=SignedUrlResponse)
def get_document_url(
    document_id: int,
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    document = _load_document(db, document_id)
    try:
        url = storage.create_signed_url(DOCUMENTS_BUCKET, document.storage_path)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return SignedUrlResponse(url=url, expires_in=storage.signed_url_expire_seconds)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: int,
    current_employee: Employee = Depends(require_admin),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    document_service.delete_document(db, storage, _load_document(db, document_id))
