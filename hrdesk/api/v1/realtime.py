"""Server-Sent Events streams for live notifications and table changes"""
import json
import logging
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from hrdesk import database
from hrdesk.config import settings
from hrdesk.database import get_db
from hrdesk.dependencies import account_from_token
from hrdesk.services.employees import normalize_email
from hrdesk.services.notifications import NotificationInbox
from hrdesk.services.realtime import ChangeFeed, get_change_feed

logger = logging.getLogger(__name__)

router = APIRouter()

STREAMABLE_TABLES = frozenset({"tasks", "task_comments", "task_attachments", "notifications", "employees", "documents"})
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
KEEP_ALIVE = ": keep-alive\n\n"


def _sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, default=str)}\n\n"


def stream_inbox(
    inbox: NotificationInbox,
    feed: ChangeFeed,
    subscription_id: int,
    heartbeat: float,
    session_factory=None,
) -> Iterator[str]:
    """Yield an inbox snapshot, then a new snapshot after every batch of relevant changes.

    A database session is opened only while a batch is applied, never while
    waiting on the feed.
    """
    session_factory = session_factory or database.SessionLocal
    try:
        with session_factory() as db:
            inbox.refresh(db)
        yield _sse("snapshot", inbox.snapshot())

        while True:
            if not feed.wait(subscription_id, heartbeat):
                if not feed.is_subscribed(subscription_id):
                    return
                yield KEEP_ALIVE
                continue

            changes = feed.drain(subscription_id)
            if not changes:
                if not feed.is_subscribed(subscription_id):
                    return
                continue

            changed = False
            with session_factory() as db:
                for change in changes:
                    changed = inbox.apply_change(db, change) or changed
            if changed:
                yield _sse("snapshot", inbox.snapshot())
    finally:
        feed.unsubscribe(subscription_id)
        logger.debug("Notification stream for %s closed", inbox.recipient)


def stream_changes(feed: ChangeFeed, subscription_id: int, heartbeat: float) -> Iterator[str]:
    try:
        while True:
            if not feed.wait(subscription_id, heartbeat):
                if not feed.is_subscribed(subscription_id):
                    return
                yield KEEP_ALIVE
                continue
            changes = feed.drain(subscription_id)
            if not changes and not feed.is_subscribed(subscription_id):
                return
            for change in changes:
                yield change.to_sse()
    finally:
        feed.unsubscribe(subscription_id)


@router.get("/notifications")
def notifications_stream(
    access_token: str = Query(..., description="Bearer token; EventSource cannot send headers"),
    db: Session = Depends(get_db),
):
    """Live inbox for the token's owner: full snapshot first, then incremental updates."""
    account = account_from_token(db, access_token)
    recipient = normalize_email(account.email)

    feed = get_change_feed()
    subscription_id = feed.subscribe({"notifications": f"recipient=eq.{recipient}", "tasks": None})
    return StreamingResponse(
        stream_inbox(NotificationInbox(recipient), feed, subscription_id, settings.REALTIME_HEARTBEAT_SECONDS),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/changes")
def changes_stream(
    table: str = Query(..., description="Table to watch"),
    row_filter: Optional[str] = Query(None, alias="filter", description="Row filter, e.g. assignee=eq.3"),
    access_token: str = Query(..., description="Bearer token; EventSource cannot send headers"),
    db: Session = Depends(get_db),
):
    """Raw change events for one table, coalesced per row between deliveries."""
    account_from_token(db, access_token)
    if table not in STREAMABLE_TABLES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Table {table!r} cannot be streamed")

    feed = get_change_feed()
    try:
        subscription_id = feed.subscribe({table: row_filter})
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    return StreamingResponse(
        stream_changes(feed, subscription_id, settings.REALTIME_HEARTBEAT_SECONDS),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
