"""Prompt loading and rendering helpers for LLM providers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from ..config import ExtractionConfig
from ..core.types import Article


_PROMPT_DIR = Path(__file__).resolve().parent.parent / "prompts"

KEYWORDS_PREFIX = "Keywords:"
TRANSLATIONS_PREFIX = "Translations:"


@lru_cache(maxsize=None)
def _load_template(name: str) -> str:
    path = _PROMPT_DIR / f"{name}.md"
    return path.read_text(encoding="utf-8").strip()


def _render_template(name: str, **values: str) -> str:
    template = _load_template(name)
    return template.format(**values)


def build_extraction_prompt(article: Article, cfg: ExtractionConfig) -> str:
    count = max(1, cfg.keyword_count)
    terms = [f"term{i}" for i in range(1, count + 1)]
    keyword_line = f"{KEYWORDS_PREFIX} " + ", ".join(terms)
    translation_line = f"{TRANSLATIONS_PREFIX} " + ", ".join(
        f"{term}: tr{i}" for i, term in enumerate(terms, start=1)
    )

    return _render_template(
        "extraction",
        keyword_count=str(count),
        target_language=cfg.target_language,
        title=article.title,
        content=article.content[: cfg.max_chars],
        keyword_line=keyword_line,
        translation_line=translation_line,
    )
