"""Abstract interface for candidate article sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..core.types import Article


class ArticleSource(ABC):
    """A news source that returns a batch of candidate articles per call."""

    @abstractmethod
    def fetch_candidates(self, language: str) -> list[Article]:
        """Return candidate articles in the given language.

        Raises:
            FetchError: If the source cannot be reached or its payload is unusable
        """
        raise NotImplementedError
