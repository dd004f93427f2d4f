"""Task attachment storage."""
import logging
import time
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from werkzeug.utils import secure_filename

from hrdesk.models import Employee, Task, TaskAttachment
from hrdesk.services.storage import ATTACHMENTS_BUCKET, LocalObjectStorage, split_extension, unique_file_name

logger = logging.getLogger(__name__)


def storage_key(owner_id: int, file_name: str) -> str:
    """Build ``<owner>/<millis>_<safe name>`` so keys never collide or escape the bucket."""
    base, extension = split_extension(file_name)
    safe_base = secure_filename(base) or "file"
    safe_extension = secure_filename(extension).lower()
    safe_name = f"{safe_base}.{safe_extension}" if safe_extension else safe_base
    return f"{owner_id}/{int(time.time() * 1000)}_{safe_name}"


def store_task_attachment(
    db: Session,
    storage: LocalObjectStorage,
    task: Task,
    file_name: str,
    data: bytes,
    content_type: Optional[str],
    uploader: Employee,
) -> TaskAttachment:
    """Upload a file for ``task`` under a name that is unique within the task."""
    existing = [row[0] for row in db.query(TaskAttachment.file_name).filter(TaskAttachment.task_id == task.id).all()]
    display_name = unique_file_name(file_name, existing)

    stored = storage.upload(ATTACHMENTS_BUCKET, storage_key(uploader.id, display_name), data, content_type)
    attachment = TaskAttachment(
        task_id=task.id,
        file_name=display_name,
        file_path=stored.public_url,
        storage_path=stored.path,
        file_type=content_type,
        file_size=stored.size,
        uploaded_by=uploader.email,
    )
    db.add(attachment)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        storage.delete(ATTACHMENTS_BUCKET, [stored.path])
        raise
    db.refresh(attachment)
    logger.info("Attachment %s stored for task %s", display_name, task.id)
    return attachment


def remove_task_attachment(db: Session, storage: LocalObjectStorage, attachment: TaskAttachment) -> None:
    storage_path = attachment.storage_path
    db.delete(attachment)
    db.commit()
    storage.delete(ATTACHMENTS_BUCKET, [storage_path])
