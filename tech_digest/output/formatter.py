"""
Render an article and its digest as a Telegram HTML message.

Layout:
    <b>📰 Title</b>
    📢 <i>Source</i> | ✍️ Author      (omitted without a source)

    Body, at most 800 characters (plus "..." on a hard cut)

    <b>🔑 Key Terms:</b>
    • term — translation            (only terms that have a translation)

    🔗 <a href="url">Read full article</a>

    📅 Published: 02.01.2006 15:04
"""

from __future__ import annotations

from html import escape

from ..core.types import Article, Digest


BODY_LIMIT = 800
ELLIPSIS = "..."
DATE_FORMAT = "%d.%m.%Y %H:%M"


def truncate_body(content: str, limit: int = BODY_LIMIT) -> str:
    """Cut content to the last sentence end within limit, or hard-cut with an ellipsis."""
    if len(content) <= limit:
        return content
    window = content[:limit]
    last_dot = window.rfind(".")
    if last_dot > 0:
        return window[: last_dot + 1]
    return window + ELLIPSIS


def format_message(article: Article, digest: Digest) -> str:
    lines = [f"<b>📰 {escape(article.title)}</b>"]

    if article.source_name:
        source_line = f"📢 <i>{escape(article.source_name)}</i>"
        if article.author:
            source_line += f" | ✍️ {escape(article.author)}"
        lines.append(source_line)
    lines.append("")

    lines.append(escape(truncate_body(article.content), quote=False))
    lines.append("")

    lines.append("<b>🔑 Key Terms:</b>")
    for term in digest.terms:
        if term.translation:
            lines.append(f"• {escape(term.term)} — {escape(term.translation)}")
    lines.append("")

    lines.append(f'🔗 <a href="{escape(article.url)}">Read full article</a>')

    if article.published_at is not None:
        lines.append("")
        lines.append(f"📅 Published: {article.published_at.strftime(DATE_FORMAT)}")

    return "\n".join(lines)
