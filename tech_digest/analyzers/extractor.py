"""Key-term extraction from a single article via the language model."""

from __future__ import annotations

import logging

from ..config import ExtractionConfig
from ..core.types import Article, Digest, Term
from ..errors import EmptyExtractionError
from ..llm.prompts import KEYWORDS_PREFIX, TRANSLATIONS_PREFIX, build_extraction_prompt
from ..llm.providers.base import CompletionProvider
from ..logging_utils import truncate_text

logger = logging.getLogger(__name__)


class DigestExtractor:
    """Ask the model for key terms and translations and parse its reply."""

    def __init__(self, provider: CompletionProvider, cfg: ExtractionConfig | None = None) -> None:
        self.provider = provider
        self.cfg = cfg or ExtractionConfig()

    def extract(self, article: Article) -> Digest:
        prompt = build_extraction_prompt(article, self.cfg)
        response = self.provider.request_completion(prompt)
        digest = parse_digest_response(response)
        logger.debug(
            "Digest parsed | terms=%d translated=%d",
            len(digest.terms),
            len(digest.translations),
        )
        return digest


def parse_digest_response(response: str) -> Digest:
    """Parse the two-line "Keywords:" / "Translations:" reply into a Digest.

    Lines that start with neither prefix are ignored. Keywords without a
    matching translation are kept with translation None.

    Raises:
        EmptyExtractionError: If no keywords could be parsed
    """
    keywords: list[str] = []
    translations: dict[str, str] = {}

    for line in response.splitlines():
        line = line.strip()
        if line.startswith(KEYWORDS_PREFIX):
            keywords.extend(_parse_keywords(line[len(KEYWORDS_PREFIX):]))
        elif line.startswith(TRANSLATIONS_PREFIX):
            translations.update(_parse_translations(line[len(TRANSLATIONS_PREFIX):]))

    if not keywords:
        raise EmptyExtractionError(
            f"no keywords found in response: {truncate_text(response, 500)}",
            response=response,
        )

    folded = {key.casefold(): value for key, value in translations.items()}
    terms = tuple(
        Term(term=kw, translation=translations.get(kw) or folded.get(kw.casefold()))
        for kw in keywords
    )
    return Digest(terms=terms)


def _parse_keywords(body: str) -> list[str]:
    return [kw.strip() for kw in body.split(",") if kw.strip()]


def _parse_translations(body: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for pair in body.split(","):
        term, sep, translation = pair.partition(":")
        if not sep:
            continue
        term = term.strip()
        translation = translation.strip()
        if term and translation:
            pairs[term] = translation
    return pairs
