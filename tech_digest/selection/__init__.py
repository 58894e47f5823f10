"""Article selection."""

from .selector import (
    TECH_KEYWORDS,
    clean_content,
    normalize_article,
    rank_candidates,
    score_article,
    select_article,
)

__all__ = [
    "TECH_KEYWORDS",
    "clean_content",
    "normalize_article",
    "rank_candidates",
    "score_article",
    "select_article",
]
