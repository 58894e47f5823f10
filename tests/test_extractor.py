"""Tests for model-response parsing and the digest extractor."""

from __future__ import annotations

import pytest

from tech_digest.analyzers.extractor import DigestExtractor, parse_digest_response
from tech_digest.config import ExtractionConfig
from tech_digest.core.types import Article, Digest, Term
from tech_digest.errors import EmptyExtractionError, ModelRequestError


class _StubProvider:
    """Records prompts and returns a canned response."""

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    def request_completion(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def test_parse_keywords_with_translations():
    digest = parse_digest_response("Keywords: cloud, AI\nTranslations: cloud: облако, AI: ИИ")
    assert digest.terms == (Term("cloud", "облако"), Term("AI", "ИИ"))


def test_parse_keeps_keywords_missing_from_translations():
    digest = parse_digest_response("Keywords: cloud, AI\nTranslations: cloud: облако")
    assert digest.keywords == ["cloud", "AI"]
    assert digest.translations == {"cloud": "облако"}
    assert digest.terms[1].translation is None


def test_parse_splits_translation_on_first_colon():
    digest = parse_digest_response("Keywords: ratio\nTranslations: ratio: 16:9 формат")
    assert digest.translations == {"ratio": "16:9 формат"}


def test_parse_discards_pairs_with_empty_side():
    digest = parse_digest_response(
        "Keywords: a, b, c\nTranslations: a: , : пусто, b без двоеточия, c: си"
    )
    assert digest.translations == {"c": "си"}


def test_parse_ignores_unrelated_lines_and_whitespace():
    response = (
        "Sure! Here is the result:\n"
        "  Keywords:  neural network ,  , edge computing  \n"
        "random noise\n"
        "   Translations: neural network: нейронная сеть, edge computing: граничные вычисления\n"
    )
    digest = parse_digest_response(response)
    assert digest.keywords == ["neural network", "edge computing"]
    assert digest.translations["edge computing"] == "граничные вычисления"


def test_parse_matches_translation_case_insensitively():
    digest = parse_digest_response("Keywords: Cloud Computing\nTranslations: cloud computing: облачные вычисления")
    assert digest.terms[0].translation == "облачные вычисления"


@pytest.mark.parametrize(
    "response",
    [
        "",
        "Translations: cloud: облако",
        "Keywords:",
        "Keywords:  ,  , ",
        "keywords: lower-case prefix does not count",
    ],
)
def test_parse_without_keywords_raises(response):
    with pytest.raises(EmptyExtractionError) as excinfo:
        parse_digest_response(response)
    assert excinfo.value.response == response


def test_digest_cannot_be_empty():
    with pytest.raises(EmptyExtractionError):
        Digest(terms=())


def test_extractor_builds_prompt_and_parses_reply():
    provider = _StubProvider("Keywords: quantum computing\nTranslations: quantum computing: квантовые вычисления")
    extractor = DigestExtractor(provider, ExtractionConfig(keyword_count=5, target_language="Russian"))
    article = Article(title="Qubits at scale", content="Quantum computing is getting real.")

    digest = extractor.extract(article)

    assert digest.translations == {"quantum computing": "квантовые вычисления"}
    prompt = provider.prompts[0]
    assert "Article Title: Qubits at scale" in prompt
    assert "Quantum computing is getting real." in prompt
    assert "Keywords: term1, term2, term3, term4, term5" in prompt
    assert "Translations: term1: tr1, term2: tr2" in prompt
    assert "Russian translations" in prompt


def test_extractor_trims_content_to_max_chars():
    provider = _StubProvider("Keywords: x")
    extractor = DigestExtractor(provider, ExtractionConfig(max_chars=10))
    extractor.extract(Article(title="T", content="0123456789ABCDEF"))
    assert "0123456789" in provider.prompts[0]
    assert "ABCDEF" not in provider.prompts[0]


def test_extractor_propagates_model_errors():
    provider = _StubProvider(error=ModelRequestError("boom"))
    extractor = DigestExtractor(provider)
    with pytest.raises(ModelRequestError):
        extractor.extract(Article(title="T", content="c"))


def test_extractor_raises_on_empty_reply():
    extractor = DigestExtractor(_StubProvider("I could not find any terms."))
    with pytest.raises(EmptyExtractionError):
        extractor.extract(Article(title="T", content="c"))
