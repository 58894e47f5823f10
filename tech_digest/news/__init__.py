"""News sources."""

from .base import ArticleSource
from .newsapi import NewsApiSource, parse_newsapi_articles

__all__ = ["ArticleSource", "NewsApiSource", "parse_newsapi_articles"]
