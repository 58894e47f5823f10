"""
Article scoring, selection and body normalization.

Scoring is additive and higher wins; the first article seen wins ties:
- one point per 10 characters of content and of description
- +50 for a named author, +30 for a named source
- +100 if published in the last 24 hours, +50 if in the last 48 hours
- +20 for each technology keyword found in the title or description
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
import logging
from typing import Sequence

from ..core.types import Article, ScoredCandidate
from ..errors import NoCandidatesError

logger = logging.getLogger(__name__)


TECH_KEYWORDS: tuple[str, ...] = (
    "technology",
    "tech",
    "software",
    "AI",
    "artificial intelligence",
    "cybersecurity",
    "digital",
    "innovation",
    "startup",
    "algorithm",
    "cloud",
    "data",
    "security",
    "privacy",
    "blockchain",
    "machine learning",
)

AUTHOR_BONUS = 50
SOURCE_BONUS = 30
FRESH_BONUS = 100
RECENT_BONUS = 50
KEYWORD_BONUS = 20

# Markers left behind by truncated NewsAPI bodies, e.g. "[+1234 chars]".
_ARTIFACTS = ("chars]", "[+")


def score_article(article: Article, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    score = len(article.content) // 10 + len(article.description) // 10

    if article.author:
        score += AUTHOR_BONUS
    if article.source_name:
        score += SOURCE_BONUS

    if article.published_at is not None:
        hours_ago = (now - article.published_at).total_seconds() / 3600
        if hours_ago < 24:
            score += FRESH_BONUS
        elif hours_ago < 48:
            score += RECENT_BONUS

    combined = f"{article.title} {article.description}".lower()
    for keyword in TECH_KEYWORDS:
        if keyword.lower() in combined:
            score += KEYWORD_BONUS

    return score


def rank_candidates(
    candidates: Sequence[Article], now: datetime | None = None
) -> list[ScoredCandidate]:
    """Score every candidate, preserving input order."""
    now = now or datetime.now(timezone.utc)
    return [ScoredCandidate(article=a, score=score_article(a, now)) for a in candidates]


def select_article(candidates: Sequence[Article], now: datetime | None = None) -> Article:
    """Pick the highest-scoring article and normalize its body.

    Args:
        candidates: Articles returned by the news source
        now: Reference time for the recency bonus (defaults to current UTC)

    Returns:
        The chosen article with cleaned content

    Raises:
        NoCandidatesError: If candidates is empty
    """
    if not candidates:
        raise NoCandidatesError("No candidate articles to choose from")

    best: ScoredCandidate | None = None
    for scored in rank_candidates(candidates, now):
        if best is None or scored.score > best.score:
            best = scored

    assert best is not None
    logger.debug("Selected article | score=%d title=%s", best.score, best.article.title)
    return normalize_article(best.article)


def normalize_article(article: Article) -> Article:
    """Prefer the description when the upstream body is shorter, then clean."""
    content = article.content
    if len(content) < len(article.description):
        content = article.description + "\n\n" + content
    return replace(article, content=clean_content(content))


def clean_content(text: str) -> str:
    """Strip feed artifacts, collapse whitespace and break after sentences.

    clean_content(clean_content(x)) == clean_content(x).
    """
    previous = None
    while previous != text:
        previous = text
        for artifact in _ARTIFACTS:
            text = text.replace(artifact, "")

    text = " ".join(text.split())
    return text.replace(". ", ".\n\n")
