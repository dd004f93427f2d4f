"""Task attachment endpoints"""
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee
from hrdesk.models import Employee, TaskAttachment
from hrdesk.schemas import SignedUrlResponse, TaskAttachmentResponse
from hrdesk.services.attachments import remove_task_attachment, store_task_attachment
from hrdesk.services.employees import is_admin
from hrdesk.services.storage import ATTACHMENTS_BUCKET, LocalObjectStorage, StorageError, get_storage
from hrdesk.services.tasks import get_task_or_404

router = APIRouter()

MAX_ATTACHMENT_BYTES = 20 * 1024 * 1024


def _load_attachment(db: Session, attachment_id: int) -> TaskAttachment:
    attachment = db.query(TaskAttachment).filter(TaskAttachment.id == attachment_id).first()
    if not attachment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attachment not found")
    return attachment


@router.post("/task/{task_id}", response_model=TaskAttachmentResponse, status_code=status.HTTP_201_CREATED)
def upload_attachment(
    task_id: int,
    file: UploadFile = File(...),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    task = get_task_or_404(db, task_id)
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A file name is required")

    data = file.file.read()
    if len(data) > MAX_ATTACHMENT_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File is too large")

    try:
        return store_task_attachment(db, storage, task, file.filename, data, file.content_type, current_employee)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.get("/task/{task_id}", response_model=List[TaskAttachmentResponse])
def list_attachments(
    task_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return (
        db.query(TaskAttachment)
        .filter(TaskAttachment.task_id == task_id)
        .order_by(TaskAttachment.created_at.desc(), TaskAttachment.id.desc())
        .all()
    )


@router.get("/{attachment_id}/signed-url", response_model=SignedUrlResponse)
def get_attachment_url(
    attachment_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    attachment = _load_attachment(db, attachment_id)
    try:
        url = storage.create_signed_url(ATTACHMENTS_BUCKET, attachment.storage_path)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return SignedUrlResponse(url=url, expires_in=storage.signed_url_expire_seconds)


@router.delete("/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attachment(
    attachment_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    attachment = _load_attachment(db, attachment_id)
    if attachment.uploaded_by != current_employee.email and not is_admin(current_employee):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own attachments")
    remove_task_attachment(db, storage, attachment)
