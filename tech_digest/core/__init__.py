"""Core data types and the subscriber registry."""

from .registry import ReadWriteLock, SubscriberRegistry
from .store import SqliteSubscriberStore
from .types import Article, Digest, ScoredCandidate, Term, TickReport

__all__ = [
    "Article",
    "Digest",
    "ReadWriteLock",
    "ScoredCandidate",
    "SqliteSubscriberStore",
    "SubscriberRegistry",
    "Term",
    "TickReport",
]
