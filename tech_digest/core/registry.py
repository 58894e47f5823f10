"""
In-memory subscriber registry shared by the inbound-event handler and the
broadcast path.

The registry is a set guarded by a writer-preferring reader/writer lock:
any number of list() calls may run at once, while add() waits for readers to
drain and blocks new readers until it finishes.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import sqlite3
import threading
from typing import Hashable, Iterator

from .store import SqliteSubscriberStore

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Reader/writer lock with writer preference."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SubscriberRegistry:
    """Thread-safe set of subscriber ids with optional display names.

    Args:
        store: Optional persistent store. Existing rows are loaded on
            construction and every add() is written through. Store failures
            are logged; the in-memory set stays authoritative.
    """

    def __init__(self, store: SqliteSubscriberStore | None = None) -> None:
        self._lock = ReadWriteLock()
        self._ids: set[Hashable] = set()
        self._names: dict[Hashable, str] = {}
        self._store = store
        if store is not None:
            self._load_from_store(store)

    def _load_from_store(self, store: SqliteSubscriberStore) -> None:
        try:
            rows = store.load()
        except sqlite3.Error as exc:
            logger.error("Failed to load subscribers: %s", exc)
            return
        with self._lock.write():
            for subscriber_id, name in rows:
                self._ids.add(subscriber_id)
                if name:
                    self._names[subscriber_id] = name
        logger.info("Loaded %d subscribers from %s", len(rows), store.db_path)

    def add(self, subscriber_id: Hashable, display_name: str | None = None) -> bool:
        """Register a subscriber. Returns True if the id was not known before."""
        with self._lock.write():
            is_new = subscriber_id not in self._ids
            self._ids.add(subscriber_id)
            if display_name:
                self._names[subscriber_id] = display_name
        # Written outside the lock; list() never waits on the disk.
        if self._store is not None and (is_new or display_name):
            try:
                self._store.save(subscriber_id, display_name)
            except sqlite3.Error as exc:
                logger.error("Failed to persist subscriber %s: %s", subscriber_id, exc)
        if is_new:
            logger.info("Subscriber added | id=%s name=%s", subscriber_id, display_name or "")
        return is_new

    def list(self) -> list[Hashable]:
        """Snapshot of all registered ids. Order is unspecified."""
        with self._lock.read():
            return list(self._ids)

    def count(self) -> int:
        with self._lock.read():
            return len(self._ids)

    def display_name(self, subscriber_id: Hashable) -> str | None:
        with self._lock.read():
            return self._names.get(subscriber_id)

    def __contains__(self, subscriber_id: object) -> bool:
        with self._lock.read():
            return subscriber_id in self._ids

    def __len__(self) -> int:
        return self.count()
