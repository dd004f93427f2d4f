"""In-process change feed for pushing committed row changes to subscribers."""

import itertools
import json
import logging
import time
from collections import OrderedDict, deque
from threading import Event, Lock
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Tuple

from hrdesk.config import settings

logger = logging.getLogger(__name__)

EVENT_TYPES = ("INSERT", "UPDATE", "DELETE")

RowFilter = Tuple[str, str]


def parse_row_filter(expression: Optional[str]) -> Optional[RowFilter]:
    """Parse a ``column=eq.value`` filter expression.

    Only equality filters are supported; anything else raises ``ValueError``.
    """
    if not expression:
        return None
    column, sep, condition = expression.partition("=")
    if not sep or not column:
        raise ValueError(f"Invalid row filter: {expression!r}")
    operator, dot, value = condition.partition(".")
    if operator != "eq" or not dot:
        raise ValueError(f"Unsupported row filter operator in {expression!r}")
    return column.strip(), value


class ChangeEvent:
    """A committed insert, update or delete of a single row."""

    def __init__(
        self,
        table: str,
        event_type: str,
        record: Dict[str, Any],
        old_record: Optional[Dict[str, Any]] = None,
    ) -> None:
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type {event_type!r}")
        self.table = table
        self.event_type = event_type
        self.record = record
        self.old_record = old_record
        self.timestamp = time.time()

    @property
    def row_key(self) -> Tuple[str, Any]:
        return self.table, self.record.get("id")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "eventType": self.event_type,
            "new": self.record if self.event_type != "DELETE" else {},
            "old": self.old_record or {},
            "timestamp": self.timestamp,
        }

    def to_sse(self) -> str:
        """Convert event to Server-Sent Events format."""
        return f"data: {json.dumps(self.to_payload(), default=str)}\n\n"

    def matches(self, table: str, row_filter: Optional[RowFilter]) -> bool:
        if table != self.table:
            return False
        if row_filter is None:
            return True
        column, expected = row_filter
        value = self.record.get(column)
        if value is None and self.old_record:
            value = self.old_record.get(column)
        return value is not None and str(value) == expected

    def __repr__(self) -> str:
        return f"ChangeEvent({self.table!r}, {self.event_type!r}, id={self.record.get('id')!r})"


def coalesce_events(events: Iterable[ChangeEvent]) -> List[ChangeEvent]:
    """Collapse several events for the same row into the net change.

    An insert followed by updates stays an insert carrying the latest row, an
    insert followed by a delete disappears, and otherwise the last event wins.
    Rows keep the position of their first surviving event.
    """
    merged: "OrderedDict[Tuple[str, Any], ChangeEvent]" = OrderedDict()
    for change in events:
        key = change.row_key
        previous = merged.get(key)
        if previous is None:
            merged[key] = change
        elif previous.event_type == "INSERT" and change.event_type == "UPDATE":
            merged[key] = ChangeEvent(change.table, "INSERT", change.record)
        elif previous.event_type == "INSERT" and change.event_type == "DELETE":
            del merged[key]
        else:
            merged[key] = change
    return list(merged.values())


class ChangeFeed:
    """
    Fans committed changes out to subscribers.

    Each subscription watches one or more tables, optionally narrowed by a
    ``column=eq.value`` row filter, and owns a bounded queue plus a wake-up
    flag. This in-memory feed serves a single process.
    """

    def __init__(self, max_queue_size: int = 200):
        self.max_queue_size = max_queue_size
        self._subscriptions: Dict[int, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._lock = Lock()

    def subscribe(self, tables: Mapping[str, Optional[str]]) -> int:
        """Register a subscription for ``{table: row_filter_or_None}``."""
        topics = {table: parse_row_filter(expression) for table, expression in tables.items()}
        if not topics:
            raise ValueError("A subscription needs at least one table")

        with self._lock:
            subscription_id = next(self._ids)
            self._subscriptions[subscription_id] = {
                "topics": topics,
                "queue": deque(maxlen=self.max_queue_size),
                "event": Event(),
            }
        logger.debug("Subscription %s opened for %s", subscription_id, sorted(topics))
        return subscription_id

    def unsubscribe(self, subscription_id: int) -> None:
        with self._lock:
            info = self._subscriptions.pop(subscription_id, None)
        if info:
            info["event"].set()
            logger.debug("Subscription %s closed", subscription_id)

    def publish(self, change: ChangeEvent) -> None:
        self.publish_many([change])

    def publish_many(self, changes: Iterable[ChangeEvent]) -> None:
        changes = list(changes)
        with self._lock:
            for info in self._subscriptions.values():
                delivered = False
                for change in changes:
                    if any(change.matches(table, row_filter) for table, row_filter in info["topics"].items()):
                        info["queue"].append(change)
                        delivered = True
                if delivered:
                    info["event"].set()

    def wait(self, subscription_id: int, timeout: float = 30.0) -> bool:
        """Block until events arrive or the timeout expires."""
        with self._lock:
            info = self._subscriptions.get(subscription_id)
            if not info:
                return False
            flag = info["event"]
        return flag.wait(timeout)

    def drain(self, subscription_id: int) -> List[ChangeEvent]:
        """Return and clear pending events, coalesced per row."""
        with self._lock:
            info = self._subscriptions.get(subscription_id)
            if not info:
                return []
            queue: Deque[ChangeEvent] = info["queue"]
            pending = list(queue)
            queue.clear()
            info["event"].clear()
        return coalesce_events(pending)

    def is_subscribed(self, subscription_id: int) -> bool:
        with self._lock:
            return subscription_id in self._subscriptions

    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)


_change_feed = ChangeFeed(settings.REALTIME_MAX_QUEUE)


def get_change_feed() -> ChangeFeed:
    """Get the process-wide change feed."""
    return _change_feed
