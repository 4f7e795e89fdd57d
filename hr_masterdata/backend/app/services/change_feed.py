"""
In-process row change feed.

Committed INSERT/UPDATE/DELETE of employees and important dates are captured
from SQLAlchemy session events and published to subscribers. A subscription
is a scoped, iterable event stream:

    with change_feed.subscribe("employees") as events:
        batch = events.drain()
"""
import logging
import queue
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

EMPLOYEES_TABLE = "employees"
IMPORTANT_DATES_TABLE = "important_dates"
TRACKED_TABLES = (EMPLOYEES_TABLE, IMPORTANT_DATES_TABLE)

_PENDING_KEY = "change_feed_pending"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str
    record_id: str
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    commit_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def record(self) -> Dict[str, Any]:
        return self.new if self.new is not None else (self.old or {})


EventFilter = Union[None, Mapping[str, Any], Callable[[ChangeEvent], bool]]


class Subscription:
    """Queue of events for one table. Iterating blocks until the subscription is closed."""

    _CLOSED = object()

    def __init__(self, feed: "ChangeFeed", table: str, event_filter: EventFilter = None):
        self.feed = feed
        self.table = table
        self.event_filter = event_filter
        self.closed = False
        self._queue: "queue.Queue[Any]" = queue.Queue()

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table:
            return False
        if self.event_filter is None:
            return True
        if callable(self.event_filter):
            return bool(self.event_filter(change))
        record = change.record
        return all(record.get(k) == v for k, v in self.event_filter.items())

    def _deliver(self, change: ChangeEvent) -> None:
        if not self.closed:
            self._queue.put(change)

    def poll(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Next event, or None when nothing arrives within timeout (0 = don't wait)."""
        try:
            if timeout == 0:
                item = self._queue.get_nowait()
            else:
                item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is self._CLOSED:
            return None
        return item

    def drain(self) -> List[ChangeEvent]:
        """Everything queued right now, in publish order."""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return events
            if item is not self._CLOSED:
                events.append(item)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.feed._remove(self)
        self._queue.put(self._CLOSED)

    def __iter__(self) -> Iterator[ChangeEvent]:
        while True:
            item = self._queue.get()
            if item is self._CLOSED:
                return
            yield item


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []

    @contextmanager
    def subscribe(self, table: str, event_filter: EventFilter = None) -> Iterator[Subscription]:
        """Scoped subscription; always released when the block exits."""
        if table not in TRACKED_TABLES:
            raise ValueError(f"Unknown table for change feed: {table}")
        subscription = Subscription(self, table, event_filter)
        with self._lock:
            self._subscriptions.append(subscription)
        try:
            yield subscription
        finally:
            subscription.close()

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def subscriber_count(self, table: Optional[str] = None) -> int:
        with self._lock:
            return sum(1 for s in self._subscriptions if table is None or s.table == table)

    def publish(self, change: ChangeEvent) -> int:
        """Deliver to every matching subscription. Returns how many received it."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(change)]
        for subscription in targets:
            subscription._deliver(change)
        return len(targets)


change_feed = ChangeFeed()


def _row_dict(obj: Any) -> Dict[str, Any]:
    mapper = inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


def _old_row_dict(obj: Any) -> Dict[str, Any]:
    state = inspect(obj)
    old = {}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        old[attr.key] = history.deleted[0] if history.deleted else getattr(obj, attr.key)
    return old


def _loaded_row_dict(obj: Any) -> Dict[str, Any]:
    """Column values already loaded on obj. Never hits the database, so it is safe for deleted rows."""
    state = inspect(obj)
    return {attr.key: state.dict.get(attr.key) for attr in state.mapper.column_attrs}


def _identity(obj: Any) -> str:
    state = inspect(obj)
    return str(state.identity[0]) if state.identity else str(obj.id)


def _tracked(obj: Any) -> bool:
    return getattr(obj, "__tablename__", None) in TRACKED_TABLES


def _after_flush(session: Session, flush_context) -> None:
    pending = session.info.setdefault(_PENDING_KEY, [])
    for obj in session.new:
        if _tracked(obj):
            pending.append(ChangeEvent(obj.__tablename__, INSERT, str(obj.id), new=_row_dict(obj)))
    for obj in session.dirty:
        if _tracked(obj) and session.is_modified(obj, include_collections=False):
            pending.append(ChangeEvent(
                obj.__tablename__, UPDATE, str(obj.id), new=_row_dict(obj), old=_old_row_dict(obj)
            ))
    for obj in session.deleted:
        if _tracked(obj):
            pending.append(ChangeEvent(obj.__tablename__, DELETE, _identity(obj), old=_loaded_row_dict(obj)))


def _after_commit(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, [])
    for change in pending:
        change_feed.publish(change)


def _after_soft_rollback(session: Session, previous_transaction) -> None:
    session.info.pop(_PENDING_KEY, None)


def install_change_capture(session_factory) -> None:
    """Attach the capture hooks to a sessionmaker (idempotent)."""
    if event.contains(session_factory, "after_flush", _after_flush):
        return
    event.listen(session_factory, "after_flush", _after_flush)
    event.listen(session_factory, "after_commit", _after_commit)
    event.listen(session_factory, "after_soft_rollback", _after_soft_rollback)
    logger.info("Change capture installed for %s", ", ".join(TRACKED_TABLES))
