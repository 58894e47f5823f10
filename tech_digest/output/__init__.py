"""Message rendering."""

from .formatter import BODY_LIMIT, format_message, truncate_body

__all__ = ["BODY_LIMIT", "format_message", "truncate_body"]
