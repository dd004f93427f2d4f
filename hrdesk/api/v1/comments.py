"""Task comment endpoints"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee
from hrdesk.models import Employee, NotificationType, TaskComment
from hrdesk.schemas import CommentCount, TaskCommentCreate, TaskCommentResponse
from hrdesk.services.employees import names_by_email
from hrdesk.services.mentions import resolve_mentioned_employees
from hrdesk.services.notifications import notify
from hrdesk.services.tasks import DELETED_USER, get_task_or_404

logger = logging.getLogger(__name__)

router = APIRouter()


def _serialize_comments(db: Session, comments: List[TaskComment]) -> List[TaskCommentResponse]:
    """Attach author names; authors without an employee record show as deleted."""
    names = names_by_email(db, (comment.user_email for comment in comments))
    responses = []
    for comment in comments:
        author_exists = comment.user_email in names
        if not author_exists:
            logger.warning("Comment %s has no employee record for %s", comment.id, comment.user_email)
        responses.append(
            TaskCommentResponse(
                id=comment.id,
                task_id=comment.task_id,
                user_email=comment.user_email,
                author_name=names.get(comment.user_email, DELETED_USER),
                author_exists=author_exists,
                content=comment.content,
                mentioned_employees=list(comment.mentioned_employees or []),
                created_at=comment.created_at,
            )
        )
    return responses


@router.post("", response_model=TaskCommentResponse, status_code=status.HTTP_201_CREATED)
def add_task_comment(
    comment_data: TaskCommentCreate,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    """Create a comment for a task and notify mentioned employees."""
    task = get_task_or_404(db, comment_data.task_id)

    content = comment_data.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Comment cannot be empty")

    mentioned = resolve_mentioned_employees(db, content, comment_data.mentions)

    comment = TaskComment(
        task_id=task.id,
        user_email=current_employee.email,
        content=content,
        mentioned_employees=[employee.email for employee in mentioned],
    )
    db.add(comment)
    db.flush()

    for employee in mentioned:
        if employee.email == current_employee.email:
            continue
        notify(
            db,
            recipient=employee.email,
            notification_type=NotificationType.MENTION,
            title="You were mentioned in a comment",
            content=f'You were mentioned in a comment on task "{task.title}"',
            related_id=task.id,
        )

    db.commit()
    db.refresh(comment)
    return _serialize_comments(db, [comment])[0]


@router.get("/task/{task_id}", response_model=List[TaskCommentResponse])
def get_task_comments(
    task_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    """Return a task's comments, oldest first."""
    get_task_or_404(db, task_id)
    comments = (
        db.query(TaskComment)
        .filter(TaskComment.task_id == task_id)
        .order_by(TaskComment.created_at.asc(), TaskComment.id.asc())
        .all()
    )
    return _serialize_comments(db, comments)


@router.get("/task/{task_id}/count", response_model=CommentCount)
def count_task_comments(
    task_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    count = db.query(TaskComment).filter(TaskComment.task_id == task_id).count()
    return CommentCount(task_id=task_id, count=count)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    comment = db.query(TaskComment).filter(TaskComment.id == comment_id).first()
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    if comment.user_email != current_employee.email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own comments")
    db.delete(comment)
    db.commit()
