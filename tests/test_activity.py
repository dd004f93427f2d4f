from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from hrdesk import models
from hrdesk.services.activity import (
    activity_page,
    display_limit_for_viewport,
    format_time_ago,
    recent_activity,
)

NOW = datetime(2025, 3, 1, 12, 0, 0)


def test_tasks_appear_newest_first(db_session: Session, make_employee, make_task):
    make_employee("Maria Santos", "maria@example.com")
    first = make_task("T1", "maria@example.com", created_at=NOW - timedelta(hours=3))
    second = make_task("T2", "maria@example.com", created_at=NOW - timedelta(hours=2))
    third = make_task("T3", "maria@example.com", created_at=NOW - timedelta(hours=1))

    items = [item for item in recent_activity(db_session, 10, now=NOW) if item.type == "task"]

    assert [item.related_id for item in items] == [third.id, second.id, first.id]
    assert items[0].id == f"task-create-{third.id}"
    assert items[0].user_name == "Maria Santos"
    assert items[0].action == "Created task"
    assert items[0].time_ago == "1 hour ago"


def test_feed_merges_sources_and_truncates(db_session: Session, make_employee, make_task):
    make_employee("Maria Santos", "maria@example.com")
    task = make_task("Audit Q1", "maria@example.com", created_at=NOW - timedelta(minutes=30))
    db_session.add(
        models.TaskComment(
            task_id=task.id,
            user_email="maria@example.com",
            content="Started",
            created_at=NOW - timedelta(minutes=5),
        )
    )
    db_session.add(
        models.TaskComment(
            task_id=999,
            user_email="gone@example.com",
            content="Orphan",
            created_at=NOW - timedelta(minutes=10),
        )
    )
    db_session.commit()

    items = recent_activity(db_session, 2, now=NOW)

    assert len(items) == 2
    assert items[0].action == "Added a comment"
    assert items[0].subject == "Audit Q1"
    assert items[0].time_ago == "5 minutes ago"
    assert items[1].subject == "a task"
    assert items[1].user_name == "gone@example.com"


def test_notifications_only_backfill_a_short_feed(db_session: Session, make_task):
    db_session.add(
        models.Notification(
            recipient="ana@example.com",
            type=models.NotificationType.OTHER,
            title="Policy update",
            content="Read the new policy",
            created_at=NOW - timedelta(days=2),
        )
    )
    db_session.commit()
    make_task("Only task", "maria@example.com", created_at=NOW - timedelta(days=1))

    short_feed = recent_activity(db_session, 5, now=NOW)
    assert [item.type for item in short_feed] == ["task", "notification"]
    assert short_feed[1].action == "Received notification"
    assert short_feed[1].subject == "Policy update"

    for index in range(3):
        make_task(f"Extra {index}", "maria@example.com", created_at=NOW - timedelta(hours=index + 1))

    full_feed = recent_activity(db_session, 2, now=NOW)
    assert all(item.type == "task" for item in full_feed)


def test_activity_page_counts_pages_from_tasks(db_session: Session, make_task):
    for index in range(23):
        make_task(f"Task {index}", "maria@example.com", created_at=NOW - timedelta(minutes=index))

    page = activity_page(db_session, 3, now=NOW)

    assert page.total == 23
    assert page.total_pages == 3
    assert page.per_page == 10
    assert [item.subject for item in page.items] == ["Task 20", "Task 21", "Task 22"]


@pytest.mark.parametrize(
    "height, expected",
    [(1200, 18), (1000, 16), (901, 16), (850, 14), (750, 12), (700, 10), (480, 10), (None, 15)],
)
def test_display_limit_follows_viewport_height(height, expected):
    assert display_limit_for_viewport(height) == expected


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(seconds=20), "just now"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=45), "45 minutes ago"),
        (timedelta(hours=1), "1 hour ago"),
        (timedelta(hours=5), "5 hours ago"),
        (timedelta(days=1), "1 day ago"),
        (timedelta(days=29), "29 days ago"),
        (timedelta(days=65), "2 months ago"),
    ],
)
def test_format_time_ago(delta, expected):
    assert format_time_ago(NOW - delta, now=NOW) == expected
