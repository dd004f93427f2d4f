"""Task lifecycle: creation, status changes, deletion and search."""
import logging
from typing import Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hrdesk.models import (
    Employee,
    Notification,
    NotificationType,
    STATUS_CYCLE,
    Task,
    TaskAttachment,
    TaskComment,
    TaskPriority,
    TaskStatus,
)
from hrdesk.schemas import TaskCreate, TaskResponse, TaskStats, TaskUpdate
from hrdesk.services.notifications import notify
from hrdesk.services.storage import ATTACHMENTS_BUCKET, LocalObjectStorage

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
DELETED_USER = "Deleted User"
SYSTEM_CREATOR = "System"


def get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


def serialize_tasks(db: Session, tasks: Iterable[Task]) -> List[TaskResponse]:
    tasks = list(tasks)
    assignee_ids = {task.assignee for task in tasks if task.assignee is not None}
    names: Dict[int, str] = {}
    if assignee_ids:
        names = dict(db.query(Employee.id, Employee.name).filter(Employee.id.in_(assignee_ids)).all())

    responses = []
    for task in tasks:
        exists = task.assignee in names
        responses.append(
            TaskResponse(
                id=task.id,
                title=task.title,
                description=task.description,
                due_date=task.due_date,
                priority=task.priority,
                status=task.status,
                creator=task.creator,
                assignee=task.assignee,
                assignee_name=names[task.assignee] if exists else (DELETED_USER if task.assignee else None),
                assignee_exists=exists or task.assignee is None,
                created_at=task.created_at,
                updated_at=task.updated_at,
            )
        )
    return responses


def serialize_task(db: Session, task: Task) -> TaskResponse:
    return serialize_tasks(db, [task])[0]


def _require_assignee(db: Session, assignee_id: int) -> Employee:
    assignee = db.query(Employee).filter(Employee.id == assignee_id).first()
    if assignee is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assignee not found")
    return assignee


def _notify_assignment(db: Session, task: Task, assignee: Employee) -> None:
    notify(
        db,
        recipient=assignee.email,
        notification_type=NotificationType.TASK_ASSIGNMENT,
        title="New Task Assigned",
        content=f"You have been assigned a new task: {task.title}",
        related_id=task.id,
    )


def create_task(db: Session, task_data: TaskCreate, creator: Optional[Employee]) -> Task:
    """Create a task and tell the assignee about it."""
    title = (task_data.title or "").strip()
    if not title or task_data.due_date is None or task_data.assignee is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=REQUIRED_FIELDS_MESSAGE)

    assignee = _require_assignee(db, task_data.assignee)

    task = Task(
        title=title,
        description=task_data.description,
        due_date=task_data.due_date,
        priority=task_data.priority or TaskPriority.MEDIUM,
        status=task_data.status or TaskStatus.PENDING,
        creator=creator.email if creator else SYSTEM_CREATOR,
        assignee=assignee.id,
    )
    db.add(task)
    db.flush()

    _notify_assignment(db, task, assignee)
    db.commit()
    db.refresh(task)
    logger.info("Task %s created by %s for %s", task.id, task.creator, assignee.email)
    return task


def update_task(db: Session, task: Task, update_data: TaskUpdate) -> Task:
    changes = update_data.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] is not None:
        changes["title"] = changes["title"].strip()
        if not changes["title"]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=REQUIRED_FIELDS_MESSAGE)

    new_assignee = None
    if changes.get("assignee") is not None and changes["assignee"] != task.assignee:
        new_assignee = _require_assignee(db, changes["assignee"])

    for field, value in changes.items():
        if value is None and field in ("title", "due_date", "priority"):
            continue
        setattr(task, field, value)
    db.flush()

    if new_assignee is not None:
        _notify_assignment(db, task, new_assignee)
    db.commit()
    db.refresh(task)
    return task


def next_status(current: TaskStatus) -> TaskStatus:
    return STATUS_CYCLE[TaskStatus(current)]


def change_status(db: Session, task: Task, new_status: Optional[TaskStatus], actor: Employee) -> Task:
    """Set the status (or advance the cycle) and tell the creator when someone else changed it."""
    task.status = new_status or next_status(task.status)
    db.flush()

    if task.creator != actor.email and "@" in task.creator:
        notify(
            db,
            recipient=task.creator,
            notification_type=NotificationType.TASK_UPDATE,
            title="Task Status Updated",
            content=(
                f'The task "{task.title}" has been updated to {TaskStatus(task.status).value} '
                f"by {actor.name or actor.email}"
            ),
            related_id=task.id,
        )
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task: Task, storage: Optional[LocalObjectStorage] = None) -> None:
    """Delete a task with its comments, notifications and attachments.

    Nothing cascades in the database, so dependents go first. Stored files
    are removed only once the rows are gone.
    """
    task_id = task.id
    for comment in db.query(TaskComment).filter(TaskComment.task_id == task_id).all():
        db.delete(comment)
    for notification in db.query(Notification).filter(Notification.related_id == task_id).all():
        db.delete(notification)

    attachments = db.query(TaskAttachment).filter(TaskAttachment.task_id == task_id).all()
    storage_paths = [attachment.storage_path for attachment in attachments]
    for attachment in attachments:
        db.delete(attachment)

    db.delete(task)
    db.commit()
    logger.info("Task %s deleted", task_id)

    if storage is not None and storage_paths:
        storage.delete(ATTACHMENTS_BUCKET, storage_paths)


def _parse_choice(enum_cls, value: str, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown {label}: {value}")


def search_tasks(
    db: Session,
    search: Optional[str] = None,
    priority: Optional[str] = None,
    task_status: Optional[str] = None,
    assignee: Optional[int] = None,
) -> List[Task]:
    """Filter tasks by a title/assignee-name substring plus priority and status.

    ``"all"`` or an empty value disables a filter.
    """
    query = db.query(Task).outerjoin(Employee, Employee.id == Task.assignee)
    term = (search or "").strip().lower()
    if term:
        query = query.filter(
            or_(
                func.lower(Task.title).contains(term, autoescape=True),
                func.lower(Employee.name).contains(term, autoescape=True),
            )
        )
    if priority and priority != "all":
        query = query.filter(Task.priority == _parse_choice(TaskPriority, priority, "priority"))
    if task_status and task_status != "all":
        query = query.filter(Task.status == _parse_choice(TaskStatus, task_status, "status"))
    if assignee is not None:
        query = query.filter(Task.assignee == assignee)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def task_stats(db: Session, assignee: Optional[int] = None) -> TaskStats:
    query = db.query(Task.status, func.count(Task.id))
    if assignee is not None:
        query = query.filter(Task.assignee == assignee)
    counts = {TaskStatus(row_status): count for row_status, count in query.group_by(Task.status).all()}
    return TaskStats(
        total=sum(counts.values()),
        pending=counts.get(TaskStatus.PENDING, 0),
        in_progress=counts.get(TaskStatus.IN_PROGRESS, 0),
        completed=counts.get(TaskStatus.COMPLETED, 0),
    )
