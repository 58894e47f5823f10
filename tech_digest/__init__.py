"""
Tech Digest - scheduled technology news digest for Telegram.

On a cron schedule this package fetches technology articles from NewsAPI,
picks the most promising one, asks a language model for key terms with
translations, and broadcasts a formatted digest to every subscriber who
sent /start to the bot.

Main entry point is the CLI via `tech-digest serve`.

Example:
    $ tech-digest run-once --dry-run
"""

__all__ = [
    "__version__",
    "Article",
    "Digest",
    "DigestExtractor",
    "DigestPipeline",
    "SubscriberRegistry",
    "format_message",
    "parse_digest_response",
    "select_article",
]
__version__ = "0.1.0"

from .analyzers.extractor import DigestExtractor, parse_digest_response
from .core.registry import SubscriberRegistry
from .core.types import Article, Digest
from .output.formatter import format_message
from .pipeline import DigestPipeline
from .selection.selector import select_article
