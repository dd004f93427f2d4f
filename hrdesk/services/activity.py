"""Recent-activity feed built from tasks, comments and notifications."""
import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from hrdesk.config import settings
from hrdesk.models import Notification, Task, TaskComment
from hrdesk.schemas import ActivityItem, ActivityPage
from hrdesk.services.employees import names_by_email

FETCH_MULTIPLIER = 5
NOTIFICATION_BACKFILL_FACTOR = 2

# (minimum viewport height, items shown), checked top-down.
VIEWPORT_LIMITS = ((1000, 18), (900, 16), (800, 14), (700, 12))
SMALL_VIEWPORT_LIMIT = 10


def display_limit_for_viewport(height: Optional[int]) -> int:
    if height is None:
        return settings.ACTIVITY_DEFAULT_LIMIT
    for minimum, limit in VIEWPORT_LIMITS:
        if height > minimum:
            return limit
    return SMALL_VIEWPORT_LIMIT


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} ago"


def format_time_ago(moment: datetime, now: Optional[datetime] = None) -> str:
    """Render a coarse relative time: minutes, hours, days, then 30-day months."""
    now = now or datetime.utcnow()
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)

    minutes = int((now - moment).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return _plural(minutes, "minute")
    hours = minutes // 60
    if hours < 24:
        return _plural(hours, "hour")
    days = hours // 24
    if days < 30:
        return _plural(days, "day")
    return _plural(days // 30, "month")


def _task_titles(db: Session, task_ids) -> dict:
    wanted = set(task_ids)
    if not wanted:
        return {}
    return dict(db.query(Task.id, Task.title).filter(Task.id.in_(wanted)).all())


def _task_items(tasks: List[Task], names: dict, now: datetime) -> List[ActivityItem]:
    return [
        ActivityItem(
            id=f"task-create-{task.id}",
            user_name=names.get(task.creator, task.creator),
            action="Created task",
            subject=task.title,
            timestamp=task.created_at,
            time_ago=format_time_ago(task.created_at, now),
            related_id=task.id,
            type="task",
        )
        for task in tasks
    ]


def _comment_items(db: Session, comments: List[TaskComment], names: dict, now: datetime) -> List[ActivityItem]:
    titles = _task_titles(db, (comment.task_id for comment in comments))
    return [
        ActivityItem(
            id=f"comment-{comment.id}",
            user_name=names.get(comment.user_email, comment.user_email),
            action="Added a comment",
            subject=titles.get(comment.task_id, "a task"),
            timestamp=comment.created_at,
            time_ago=format_time_ago(comment.created_at, now),
            related_id=comment.task_id,
            type="comment",
        )
        for comment in comments
    ]


def _notification_items(notifications: List[Notification], names: dict, now: datetime) -> List[ActivityItem]:
    return [
        ActivityItem(
            id=f"notification-{notification.id}",
            user_name=names.get(notification.recipient, notification.recipient),
            action="Received notification",
            subject=notification.title,
            timestamp=notification.created_at,
            time_ago=format_time_ago(notification.created_at, now),
            related_id=notification.related_id,
            type="notification",
        )
        for notification in notifications
    ]


def recent_activity(db: Session, limit: Optional[int] = None, now: Optional[datetime] = None) -> List[ActivityItem]:
    """Merge the newest tasks and comments, backfilled with notifications, newest first.

    Each source is over-fetched so the merged list can still fill ``limit``
    after sorting. Notifications are only consulted when tasks and comments
    together come up short.
    """
    limit = limit or settings.ACTIVITY_DEFAULT_LIMIT
    now = now or datetime.utcnow()
    fetch_limit = limit * FETCH_MULTIPLIER

    tasks = db.query(Task).order_by(Task.created_at.desc(), Task.id.desc()).limit(fetch_limit).all()
    comments = (
        db.query(TaskComment)
        .order_by(TaskComment.created_at.desc(), TaskComment.id.desc())
        .limit(fetch_limit)
        .all()
    )

    notifications = []
    if len(tasks) + len(comments) < limit * NOTIFICATION_BACKFILL_FACTOR:
        notifications = (
            db.query(Notification)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(fetch_limit)
            .all()
        )

    names = names_by_email(
        db,
        [task.creator for task in tasks]
        + [comment.user_email for comment in comments]
        + [notification.recipient for notification in notifications],
    )

    items = (
        _task_items(tasks, names, now)
        + _comment_items(db, comments, names, now)
        + _notification_items(notifications, names, now)
    )
    items.sort(key=lambda item: item.timestamp, reverse=True)
    return items[:limit]


def activity_page(db: Session, page: int = 1, per_page: Optional[int] = None, now: Optional[datetime] = None) -> ActivityPage:
    """One page of task and comment activity; the page count follows the task total."""
    per_page = per_page or settings.ACTIVITY_PAGE_SIZE
    page = max(1, page)
    now = now or datetime.utcnow()
    offset = (page - 1) * per_page

    total = db.query(Task).count()
    tasks = db.query(Task).order_by(Task.created_at.desc(), Task.id.desc()).offset(offset).limit(per_page).all()
    comments = (
        db.query(TaskComment)
        .order_by(TaskComment.created_at.desc(), TaskComment.id.desc())
        .offset(offset)
        .limit(per_page)
        .all()
    )

    names = names_by_email(db, [task.creator for task in tasks] + [comment.user_email for comment in comments])
    items = _task_items(tasks, names, now) + _comment_items(db, comments, names, now)
    items.sort(key=lambda item: item.timestamp, reverse=True)

    return ActivityPage(
        items=items,
        page=page,
        per_page=per_page,
        total=total,
        total_pages=math.ceil(total / per_page) if total else 0,
    )
