import json
from datetime import date

import pytest
from sqlalchemy.orm import Session

from hrdesk import models
from hrdesk.api.v1.realtime import KEEP_ALIVE, stream_inbox
from hrdesk.security import create_token
from hrdesk.services.notifications import NotificationInbox
from hrdesk.services.realtime import (
    ChangeEvent,
    ChangeFeed,
    coalesce_events,
    get_change_feed,
    parse_row_filter,
)


def _payload(chunk: str) -> dict:
    return json.loads(chunk.split("data: ", 1)[1])


def test_parse_row_filter():
    assert parse_row_filter(None) is None
    assert parse_row_filter("recipient=eq.maria@example.com") == ("recipient", "maria@example.com")
    assert parse_row_filter("assignee=eq.3") == ("assignee", "3")
    for expression in ("assignee", "assignee=gt.3", "=eq.3"):
        with pytest.raises(ValueError):
            parse_row_filter(expression)


def test_coalesce_collapses_per_row():
    events = [
        ChangeEvent("tasks", "INSERT", {"id": 1, "status": "pending"}),
        ChangeEvent("tasks", "UPDATE", {"id": 1, "status": "completed"}),
        ChangeEvent("tasks", "INSERT", {"id": 2}),
        ChangeEvent("tasks", "DELETE", {"id": 2}),
        ChangeEvent("tasks", "UPDATE", {"id": 3, "title": "a"}),
        ChangeEvent("tasks", "UPDATE", {"id": 3, "title": "b"}),
    ]

    merged = coalesce_events(events)

    assert [(change.record["id"], change.event_type) for change in merged] == [(1, "INSERT"), (3, "UPDATE")]
    assert merged[0].record["status"] == "completed"
    assert merged[1].record["title"] == "b"


def test_feed_delivers_only_matching_rows():
    feed = ChangeFeed()
    mine = feed.subscribe({"notifications": "recipient=eq.maria@example.com"})
    everything = feed.subscribe({"notifications": None, "tasks": None})

    feed.publish_many(
        [
            ChangeEvent("notifications", "INSERT", {"id": 1, "recipient": "maria@example.com"}),
            ChangeEvent("notifications", "INSERT", {"id": 2, "recipient": "jose@example.com"}),
            ChangeEvent("tasks", "DELETE", {"id": 7}),
        ]
    )

    assert feed.wait(mine, timeout=0.1) is True
    assert [change.record["id"] for change in feed.drain(mine)] == [1]
    assert len(feed.drain(everything)) == 3
    assert feed.wait(mine, timeout=0.01) is False


def test_delete_matches_filter_through_old_record():
    change = ChangeEvent("notifications", "DELETE", {"id": 4}, {"id": 4, "recipient": "maria@example.com"})

    assert change.matches("notifications", ("recipient", "maria@example.com"))
    assert change.to_payload()["new"] == {}
    assert change.to_sse().startswith("data: ")


def test_unsubscribed_feed_stops_waiting():
    feed = ChangeFeed()
    subscription = feed.subscribe({"tasks": None})
    feed.unsubscribe(subscription)

    assert feed.wait(subscription, timeout=5) is False
    assert feed.drain(subscription) == []
    assert feed.subscription_count() == 0


def test_committed_changes_reach_the_global_feed(db_session: Session, make_task):
    feed = get_change_feed()
    subscription = feed.subscribe({"tasks": None})
    try:
        task = make_task("Audit Q1", "maria@example.com")
        task.title = "Audit Q2"
        db_session.commit()

        changes = feed.drain(subscription)
        assert [(change.event_type, change.record["title"]) for change in changes] == [("INSERT", "Audit Q2")]
    finally:
        feed.unsubscribe(subscription)


def test_rolled_back_changes_are_not_published(db_session: Session):
    feed = get_change_feed()
    subscription = feed.subscribe({"tasks": None, "notifications": None})
    try:
        db_session.add(models.Task(title="Draft", creator="maria@example.com", due_date=date(2025, 3, 1)))
        db_session.flush()
        db_session.rollback()
        assert feed.drain(subscription) == []

        db_session.add(models.Task(title="Kept", creator="maria@example.com", due_date=date(2025, 3, 1)))
        db_session.flush()
        with pytest.raises(RuntimeError):
            with db_session.begin_nested():
                db_session.add(models.Notification(recipient="maria@example.com", title="Lost", content="x"))
                db_session.flush()
                raise RuntimeError("abandon savepoint")
        db_session.commit()

        changes = feed.drain(subscription)
        assert [(change.table, change.record["title"]) for change in changes] == [("tasks", "Kept")]
    finally:
        feed.unsubscribe(subscription)


def test_inbox_stream_sends_snapshots_and_heartbeats(db_session: Session, make_employee, make_task, session_factory):
    make_employee("Maria Santos", "maria@example.com")
    task = make_task("Audit Q1", "jose@example.com")
    task_id = task.id
    first = models.Notification(
        recipient="maria@example.com",
        type=models.NotificationType.TASK_ASSIGNMENT,
        title="New Task Assigned",
        content="You have been assigned a new task: Audit Q1",
        related_id=task_id,
    )
    db_session.add(first)
    db_session.commit()

    feed = ChangeFeed()
    subscription = feed.subscribe({"notifications": "recipient=eq.maria@example.com", "tasks": None})
    stream = stream_inbox(
        NotificationInbox("maria@example.com"), feed, subscription, heartbeat=0.01, session_factory=session_factory
    )

    snapshot = next(stream)
    assert snapshot.startswith("event: snapshot")
    assert _payload(snapshot)["unread_count"] == 1
    assert next(stream) == KEEP_ALIVE

    second = models.Notification(recipient="maria@example.com", title="Policy", content="Read it")
    db_session.add(second)
    db_session.commit()
    second_id = second.id
    feed.publish(ChangeEvent("notifications", "INSERT", {"id": second_id, "recipient": "maria@example.com"}))

    updated = _payload(next(stream))
    assert updated["unread_count"] == 2
    assert updated["items"][0]["id"] == second_id

    feed.publish(ChangeEvent("tasks", "DELETE", {"id": task_id}))
    tombstoned = _payload(next(stream))
    linked = [item for item in tombstoned["items"] if item["related_id"] == task_id]
    assert linked[0]["related_item_exists"] is False

    stream.close()
    assert feed.subscription_count() == 0


def test_changes_stream_rejects_unknown_tables(client, db_session: Session):
    account = models.Account(email="maria@example.com", hashed_password="x")
    db_session.add(account)
    db_session.commit()
    token = create_token(str(account.id))

    response = client.get("/api/v1/realtime/changes", params={"table": "accounts", "access_token": token})
    assert response.status_code == 400

    response = client.get(
        "/api/v1/realtime/changes", params={"table": "tasks", "filter": "assignee=gt.1", "access_token": token}
    )
    assert response.status_code == 400

    response = client.get("/api/v1/realtime/changes", params={"table": "tasks", "access_token": "bad"})
    assert response.status_code == 401
