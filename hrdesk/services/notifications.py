"""Notification delivery and the per-user inbox.

``notify`` writes best-effort notifications next to a primary write.
``NotificationInbox`` keeps one user's notifications, their unread count and
the existence of the tasks they point at, and can be refreshed in full or
patched from change-feed events.
"""
import logging
from typing import Dict, Iterable, List, Optional, Set

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hrdesk.models import Employee, Notification, NotificationType, Task, TASK_LINKED_TYPES
from hrdesk.schemas import NotificationOpenResult, NotificationResponse
from hrdesk.services.realtime import ChangeEvent

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "The task this notification refers to is no longer available."


def notify(
    db: Session,
    recipient: str,
    notification_type: NotificationType,
    title: str,
    content: str,
    related_id: Optional[int] = None,
) -> Optional[Notification]:
    """Add a notification inside a savepoint.

    Failure is logged and leaves the surrounding transaction usable, so the
    write that triggered the notification still goes through.
    """
    notification = Notification(
        recipient=recipient,
        type=notification_type,
        title=title,
        content=content,
        related_id=related_id,
        read=False,
    )
    try:
        with db.begin_nested():
            db.add(notification)
    except SQLAlchemyError:
        logger.exception("Could not create %s notification for %s", notification_type.value, recipient)
        return None
    return notification


def existing_task_ids(db: Session, task_ids: Iterable[int]) -> Set[int]:
    wanted = {task_id for task_id in task_ids if task_id is not None}
    if not wanted:
        return set()
    return {row[0] for row in db.query(Task.id).filter(Task.id.in_(wanted)).all()}


def _links_task(notification: Notification) -> bool:
    return notification.related_id is not None and notification.type in TASK_LINKED_TYPES


def serialize_notifications(db: Session, notifications: List[Notification]) -> List[NotificationResponse]:
    """Annotate notifications with ``related_item_exists`` using one batched lookup."""
    live_ids = existing_task_ids(db, (n.related_id for n in notifications if _links_task(n)))
    items = []
    for notification in notifications:
        item = NotificationResponse.model_validate(notification)
        if _links_task(notification):
            item.related_item_exists = notification.related_id in live_ids
        items.append(item)
    return items


class NotificationInbox:
    """Notifications for one recipient, newest first, with an unread counter."""

    def __init__(self, recipient: str):
        self.recipient = recipient
        self.items: List[NotificationResponse] = []
        self.unread_count = 0
        self.loaded = False

    def _index(self) -> Dict[int, NotificationResponse]:
        return {item.id: item for item in self.items}

    def _recount(self) -> None:
        self.unread_count = sum(1 for item in self.items if not item.read)

    def _sort(self) -> None:
        self.items.sort(key=lambda item: (item.created_at, item.id), reverse=True)

    def refresh(self, db: Session) -> "NotificationInbox":
        """Reload everything. Without an employee record the previous state is kept."""
        employee = db.query(Employee.id).filter(Employee.email == self.recipient).first()
        if employee is None:
            logger.warning("No employee record for %s; notifications not loaded", self.recipient)
            return self

        notifications = (
            db.query(Notification)
            .filter(Notification.recipient == self.recipient)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .all()
        )
        self.items = serialize_notifications(db, notifications)
        self._recount()
        self.loaded = True
        return self

    def _load_row(self, db: Session, notification_id: int) -> Notification:
        notification = (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.recipient == self.recipient)
            .first()
        )
        if notification is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
        return notification

    def mark_as_read(self, db: Session, notification_id: int) -> NotificationResponse:
        """Persist the read flag first, then update local state.

        The unread count drops by one only if the notification was unread,
        and never below zero. A failed write leaves local state untouched.
        """
        notification = self._load_row(db, notification_id)
        was_unread = not notification.read
        if was_unread:
            notification.read = True
            db.commit()

        local = self._index().get(notification_id)
        if local is None:
            local = serialize_notifications(db, [notification])[0]
        elif not local.read:
            local.read = True
            was_unread = True
        if was_unread:
            self.unread_count = max(0, self.unread_count - 1)
        return local

    def mark_all_as_read(self, db: Session) -> int:
        """Flag every locally unread notification as read. Returns how many rows changed."""
        unread_ids = [item.id for item in self.items if not item.read]
        if not unread_ids:
            return 0

        rows = (
            db.query(Notification)
            .filter(Notification.id.in_(unread_ids), Notification.recipient == self.recipient)
            .all()
        )
        for row in rows:
            row.read = True
        db.commit()

        for item in self.items:
            item.read = True
        self.unread_count = 0
        return len(rows)

    def delete(self, db: Session, notification_id: int) -> None:
        notification = self._load_row(db, notification_id)
        db.delete(notification)
        db.commit()
        self.items = [item for item in self.items if item.id != notification_id]
        self._recount()

    def open(self, db: Session, notification_id: int) -> NotificationOpenResult:
        """Mark as read and resolve where the client should navigate.

        A notification whose task is gone has no target; the client stays
        where it is and shows the message instead.
        """
        item = self.mark_as_read(db, notification_id)
        if item.related_id is None or item.type not in TASK_LINKED_TYPES:
            return NotificationOpenResult(notification=item)

        exists = item.related_id in existing_task_ids(db, [item.related_id])
        item.related_item_exists = exists
        if not exists:
            return NotificationOpenResult(notification=item, message=UNAVAILABLE_MESSAGE)
        return NotificationOpenResult(notification=item, target=f"/tasks/{item.related_id}")

    def apply_change(self, db: Session, change: ChangeEvent) -> bool:
        """Patch local state from one change event. Returns True when something changed."""
        if change.table == "tasks" and change.event_type == "DELETE":
            task_id = change.record.get("id")
            changed = False
            for item in self.items:
                if item.related_id == task_id and item.type in TASK_LINKED_TYPES and item.related_item_exists:
                    item.related_item_exists = False
                    changed = True
            return changed

        if change.table != "notifications":
            return False

        notification_id = change.record.get("id")
        if change.event_type == "DELETE":
            before = len(self.items)
            self.items = [item for item in self.items if item.id != notification_id]
            self._recount()
            return len(self.items) != before

        if change.record.get("recipient") != self.recipient:
            return False

        notification = db.query(Notification).filter(Notification.id == notification_id).first()
        if notification is None:
            return False
        fresh = serialize_notifications(db, [notification])[0]
        self.items = [item for item in self.items if item.id != notification_id]
        self.items.append(fresh)
        self._sort()
        self._recount()
        return True

    def snapshot(self) -> dict:
        return {
            "items": [item.model_dump(mode="json") for item in self.items],
            "unread_count": self.unread_count,
        }
