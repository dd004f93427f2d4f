"""Notification endpoints"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from hrdesk.database import get_db
from hrdesk.dependencies import get_current_employee
from hrdesk.models import Employee
from hrdesk.schemas import (
    MarkAllReadResult,
    NotificationList,
    NotificationOpenResult,
    NotificationResponse,
    UnreadCount,
)
from hrdesk.services.notifications import NotificationInbox

router = APIRouter()


def _inbox(db: Session, employee: Employee) -> NotificationInbox:
    return NotificationInbox(employee.email).refresh(db)


@router.get("", response_model=NotificationList)
def list_notifications(
    unread_only: bool = Query(False, description="Return only unread notifications"),
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    """List notifications for the current user, newest first."""
    inbox = _inbox(db, current_employee)
    items = [item for item in inbox.items if not item.read] if unread_only else inbox.items
    return NotificationList(items=items, unread_count=inbox.unread_count)


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return UnreadCount(unread_count=_inbox(db, current_employee).unread_count)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    return _inbox(db, current_employee).mark_as_read(db, notification_id)


@router.post("/read-all", response_model=MarkAllReadResult)
def mark_all_notifications_read(
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    inbox = _inbox(db, current_employee)
    updated = inbox.mark_all_as_read(db)
    return MarkAllReadResult(updated=updated, unread_count=inbox.unread_count)


@router.post("/{notification_id}/open", response_model=NotificationOpenResult)
def open_notification(
    notification_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    """Mark a notification read and tell the client where to go, if anywhere."""
    return _inbox(db, current_employee).open(db, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    current_employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db),
):
    _inbox(db, current_employee).delete(db, notification_id)
