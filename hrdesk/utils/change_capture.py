"""Session hooks that turn committed row changes into change-feed events."""
from __future__ import annotations

import enum
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Type

from sqlalchemy import event, inspect
from sqlalchemy.orm import Mapper, Session, object_session

from hrdesk.services.realtime import ChangeEvent, get_change_feed

logger = logging.getLogger(__name__)

_PENDING_KEY = "hrdesk.pending_changes"
_SAVEPOINT_MARKS_KEY = "hrdesk.savepoint_marks"


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def row_to_dict(target: object) -> Dict[str, Any]:
    """Serialise the loaded columns of ``target`` into JSON-friendly values.

    Only already-loaded state is read; expired columns come out as ``None``
    rather than triggering a load in the middle of a flush.
    """
    state = inspect(target)
    data = {attr.key: _jsonable(state.dict.get(attr.key)) for attr in state.mapper.column_attrs}
    if data.get("id") is None and state.identity:
        data["id"] = state.identity[0]
    return data


def _previous_values(target: object) -> Dict[str, Any]:
    state = inspect(target)
    previous = {}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if history.deleted:
            previous[attr.key] = _jsonable(history.deleted[0])
        else:
            previous[attr.key] = _jsonable(state.dict.get(attr.key))
    return previous


def _has_column_changes(target: object) -> bool:
    state = inspect(target)
    return any(state.attrs[attr.key].history.has_changes() for attr in state.mapper.column_attrs)


def _pending(session: Session) -> List[ChangeEvent]:
    return session.info.setdefault(_PENDING_KEY, [])


def _queue(target: object, table: str, event_type: str, old_record: Dict[str, Any] = None) -> None:
    session = object_session(target)
    if session is None:
        return
    _pending(session).append(ChangeEvent(table, event_type, row_to_dict(target), old_record))


def register_change_capture(model: Type[object]) -> None:
    """Record inserts, updates and deletes of ``model`` for publication after commit."""

    table = getattr(model, "__table__", None)
    if table is None:
        raise ValueError(f"Model {model!r} is not mapped to a table")

    table_name = table.name

    @event.listens_for(model, "after_insert", propagate=True)
    def _after_insert(_: Mapper, connection, target) -> None:
        _queue(target, table_name, "INSERT")

    @event.listens_for(model, "after_update", propagate=True)
    def _after_update(_: Mapper, connection, target) -> None:
        if not _has_column_changes(target):
            return
        _queue(target, table_name, "UPDATE", _previous_values(target))

    @event.listens_for(model, "after_delete", propagate=True)
    def _after_delete(_: Mapper, connection, target) -> None:
        _queue(target, table_name, "DELETE", row_to_dict(target))


@event.listens_for(Session, "after_transaction_create")
def _mark_savepoint(session: Session, transaction) -> None:
    if transaction.nested:
        marks = session.info.setdefault(_SAVEPOINT_MARKS_KEY, {})
        marks[id(transaction)] = len(session.info.get(_PENDING_KEY, []))


@event.listens_for(Session, "after_soft_rollback")
def _discard_rolled_back(session: Session, previous_transaction) -> None:
    if previous_transaction.nested:
        mark = session.info.get(_SAVEPOINT_MARKS_KEY, {}).pop(id(previous_transaction), None)
        if mark is not None:
            del _pending(session)[mark:]
        return
    # A failed flush rolls back its own subtransaction; only the outermost rollback clears the queue.
    if previous_transaction.parent is not None:
        return
    session.info.pop(_PENDING_KEY, None)
    session.info.pop(_SAVEPOINT_MARKS_KEY, None)


@event.listens_for(Session, "after_commit")
def _publish_committed(session: Session) -> None:
    # Releasing a savepoint also fires after_commit; wait for the outer commit.
    if session.in_nested_transaction():
        return
    session.info.pop(_SAVEPOINT_MARKS_KEY, None)
    events = session.info.pop(_PENDING_KEY, None)
    if not events:
        return
    logger.debug("Publishing %d committed change(s)", len(events))
    get_change_feed().publish_many(events)
