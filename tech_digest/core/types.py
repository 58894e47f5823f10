"""
Core data types for the Tech Digest pipeline.

This module defines the fundamental data structures passed between stages:
- Article: A news article as returned by the news source
- ScoredCandidate: An article paired with its selection score
- Term / Digest: Key terms and translations extracted by the language model
- TickReport: Outcome of one scheduled pipeline run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Hashable

from ..errors import EmptyExtractionError


@dataclass(frozen=True)
class Article:
    """A fetched news article.

    Attributes:
        title: The article headline
        description: Short description/lede from the news API
        content: Article body (often truncated upstream)
        source_name: Publication name (e.g., "TechCrunch"), may be empty
        author: Author name, may be empty
        published_at: Publish timestamp, or None if the feed omitted it
        url: Canonical URL to the original article
    """
    title: str
    description: str = ""
    content: str = ""
    source_name: str = ""
    author: str = ""
    published_at: datetime | None = None
    url: str = ""


@dataclass(frozen=True)
class ScoredCandidate:
    """Article with its selection score. Only exists during selection."""
    article: Article
    score: int


@dataclass(frozen=True)
class Term:
    """A key term and its translation, if the model provided one."""
    term: str
    translation: str | None = None


@dataclass(frozen=True)
class Digest:
    """Key terms extracted from one article, in the order the model listed them.

    A Digest always holds at least one term; an empty extraction raises
    EmptyExtractionError instead of producing an empty Digest.

    Attributes:
        terms: Ordered (term, translation) pairs
        summary: Free-text summary, reserved and not rendered yet
    """
    terms: tuple[Term, ...]
    summary: str = ""

    def __post_init__(self) -> None:
        if not self.terms:
            raise EmptyExtractionError("Digest requires at least one term")

    @property
    def keywords(self) -> list[str]:
        return [t.term for t in self.terms]

    @property
    def translations(self) -> dict[str, str]:
        return {t.term: t.translation for t in self.terms if t.translation}


@dataclass
class TickReport:
    """Outcome of a single pipeline tick.

    Attributes:
        status: "sent" when the fan-out ran, "skipped" when another tick was active
        article_title: Title of the broadcast article
        recipients: Number of subscribers in the registry snapshot
        delivered: Number of successful sends
        failed: Subscriber ids whose send raised SendError
        started_at: Tick start time (UTC)
        finished_at: Tick end time (UTC)
    """
    status: str
    article_title: str | None = None
    recipients: int = 0
    delivered: int = 0
    failed: list[Hashable] = field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None
