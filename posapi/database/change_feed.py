"""
Push-style read views over committed data.

A ``Subscription`` watches one or more tables ("collections") and yields a
fresh ``Snapshot`` of its query every time a commit touches one of them.
Snapshots carry the commit sequence they reflect; the sequence never goes
backwards, but a slow reader only sees the latest state, not every
intermediate one.

Commits are observed through SQLAlchemy session events, so any session
(request scoped, atomic unit, script) feeds every subscriber.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Iterator, Optional, Set, TypeVar

from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TOUCHED_KEY = "posapi_touched_tables"


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    sequence: int
    data: T


class Subscription(Generic[T]):
    """Iterator of snapshots for one query. Close it to stop."""

    def __init__(
        self,
        feed: "ChangeFeed",
        collections: Set[str],
        query: Callable[[Session], T],
        session_factory: Callable[[], Session],
    ):
        self.collections = collections
        self._feed = feed
        self._query = query
        self._session_factory = session_factory
        self._cond = threading.Condition()
        self._closed = False
        self._delivered: Optional[int] = None
        self._latest = feed.sequence

    @property
    def closed(self) -> bool:
        return self._closed

    def _notify(self, sequence: int) -> None:
        with self._cond:
            if sequence > self._latest:
                self._latest = sequence
            self._cond.notify_all()

    def _load(self, sequence: int) -> Snapshot[T]:
        db = self._session_factory()
        try:
            data = self._query(db)
        finally:
            db.close()
        self._delivered = sequence
        return Snapshot(sequence=sequence, data=data)

    def get(self, timeout: Optional[float] = None) -> Optional[Snapshot[T]]:
        """
        Next snapshot. The first call returns the current state right away;
        later calls block until a relevant commit lands.

        Returns None on timeout or once the subscription is closed.
        """
        with self._cond:
            if self._delivered is not None:
                self._cond.wait_for(
                    lambda: self._closed or self._latest > self._delivered,
                    timeout=timeout,
                )
            if self._closed:
                return None
            if self._delivered is not None and self._latest <= self._delivered:
                return None
            sequence = self._latest
        return self._load(sequence)

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        self._feed._remove(self)

    def __iter__(self) -> Iterator[Snapshot[T]]:
        while True:
            snapshot = self.get()
            if snapshot is None:
                return
            yield snapshot

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ChangeFeed:
    """Fan-out of commit notifications to subscriptions."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: list = []
        self.sequence = 0

    def subscribe(
        self,
        collections: Iterable[str],
        query: Callable[[Session], T],
        session_factory: Optional[Callable[[], Session]] = None,
    ) -> Subscription[T]:
        if session_factory is None:
            from posapi.database.connection import SessionLocal

            session_factory = SessionLocal
        subscription = Subscription(self, set(collections), query, session_factory)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def publish(self, tables: Set[str]) -> int:
        """Record a commit that touched ``tables`` and wake interested readers."""
        with self._lock:
            self.sequence += 1
            sequence = self.sequence
            targets = [s for s in self._subscriptions if s.collections & tables]
        for subscription in targets:
            subscription._notify(sequence)
        return sequence

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)


change_feed = ChangeFeed()


def _table_name(obj) -> Optional[str]:
    table = getattr(obj, "__table__", None)
    return getattr(table, "name", None)


@event.listens_for(Session, "after_flush")
def _collect_touched_tables(session: Session, flush_context) -> None:
    touched = session.info.setdefault(_TOUCHED_KEY, set())
    for obj in list(session.new) + list(session.dirty) + list(session.deleted):
        name = _table_name(obj)
        if name:
            touched.add(name)


@event.listens_for(Session, "after_commit")
def _publish_commit(session: Session) -> None:
    touched = session.info.pop(_TOUCHED_KEY, None)
    if touched:
        sequence = change_feed.publish(touched)
        logger.debug(f"Commit #{sequence} touched {sorted(touched)}")


@event.listens_for(Session, "after_rollback")
def _discard_touched_tables(session: Session) -> None:
    session.info.pop(_TOUCHED_KEY, None)
