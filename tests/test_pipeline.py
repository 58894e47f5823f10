"""Tests for tick orchestration, fan-out isolation and the single-flight guard."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import threading

import pytest

from tech_digest.analyzers.extractor import DigestExtractor
from tech_digest.core.registry import SubscriberRegistry
from tech_digest.core.types import Article
from tech_digest.errors import (
    EmptyExtractionError,
    FetchError,
    ModelRequestError,
    NoCandidatesError,
    SendError,
)
from tech_digest.pipeline import DigestPipeline


NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)
REPLY = "Keywords: cloud, AI\nTranslations: cloud: облако, AI: ИИ"


class _StubSource:
    def __init__(self, articles=None, error=None, gate=None):
        self.articles = articles or []
        self.error = error
        self.gate = gate
        self.entered = threading.Event()
        self.languages: list[str] = []

    def fetch_candidates(self, language):
        self.languages.append(language)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        if self.error is not None:
            raise self.error
        return list(self.articles)


class _StubProvider:
    def __init__(self, response=REPLY, error=None):
        self.response = response
        self.error = error

    def request_completion(self, prompt):
        if self.error is not None:
            raise self.error
        return self.response


class _RecordingTransport:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent: list[tuple[object, str, str]] = []

    def send(self, subscriber_id, text, content_format="html"):
        if subscriber_id in self.failing:
            raise SendError(subscriber_id, "Forbidden: bot was blocked by the user")
        self.sent.append((subscriber_id, text, content_format))


def _article(**overrides) -> Article:
    values = {
        "title": "Cloud AI platform launches",
        "description": "A cloud platform for AI workloads.",
        "content": "The platform runs models. It scales.",
        "source_name": "TechCrunch",
        "author": "Kim",
        "published_at": NOW - timedelta(hours=2),
        "url": "https://example.com/cloud-ai",
    }
    values.update(overrides)
    return Article(**values)


def _pipeline(source, provider=None, transport=None, subscribers=(1, 2, 3)):
    registry = SubscriberRegistry()
    for subscriber_id in subscribers:
        registry.add(subscriber_id)
    return DigestPipeline(
        source=source,
        extractor=DigestExtractor(provider or _StubProvider()),
        transport=transport or _RecordingTransport(),
        registry=registry,
        language="en",
    )


def _key_terms_section(message: str) -> list[str]:
    lines = message.split("\n")
    start = lines.index("<b>🔑 Key Terms:</b>") + 1
    end = lines.index("", start)
    return lines[start:end]


def test_end_to_end_short_content_uses_description():
    description = "D" * 199 + "."
    content = "C" * 50
    article = _article(description=description, content=content)
    transport = _RecordingTransport()
    pipeline = _pipeline(_StubSource([article]), transport=transport, subscribers=(10,))

    chosen, digest, message = pipeline.prepare(now=NOW)

    assert chosen.content == description + "\n\n" + content
    assert digest.translations == {"cloud": "облако", "AI": "ИИ"}
    assert _key_terms_section(message) == ["• cloud — облако", "• AI — ИИ"]

    report = pipeline.run_tick(now=NOW)
    assert report.status == "sent"
    assert report.delivered == 1
    assert transport.sent == [(10, message, "html")]


def test_tick_broadcasts_to_every_subscriber():
    transport = _RecordingTransport()
    source = _StubSource([_article()])
    pipeline = _pipeline(source, transport=transport, subscribers=(1, 2, 3))

    report = pipeline.run_tick(now=NOW)

    assert sorted(sid for sid, _, _ in transport.sent) == [1, 2, 3]
    assert len({text for _, text, _ in transport.sent}) == 1
    assert report.recipients == 3
    assert report.delivered == 3
    assert report.failed == []
    assert report.article_title == "Cloud AI platform launches"
    assert source.languages == ["en"]


def test_send_failure_is_isolated_per_subscriber():
    transport = _RecordingTransport(failing={2})
    pipeline = _pipeline(_StubSource([_article()]), transport=transport, subscribers=(1, 2, 3))

    report = pipeline.run_tick(now=NOW)

    assert sorted(sid for sid, _, _ in transport.sent) == [1, 3]
    assert report.failed == [2]
    assert report.delivered == 2
    assert report.status == "sent"


def test_tick_with_no_subscribers_still_completes():
    transport = _RecordingTransport()
    report = _pipeline(_StubSource([_article()]), transport=transport, subscribers=()).run_tick(now=NOW)
    assert report.status == "sent"
    assert report.recipients == 0
    assert transport.sent == []


@pytest.mark.parametrize(
    ("source", "provider", "error"),
    [
        (_StubSource(error=FetchError("timeout")), _StubProvider(), FetchError),
        (_StubSource([]), _StubProvider(), NoCandidatesError),
        (_StubSource([_article()]), _StubProvider(error=ModelRequestError("500")), ModelRequestError),
        (_StubSource([_article()]), _StubProvider(response="no terms here"), EmptyExtractionError),
    ],
)
def test_upstream_failures_abort_before_sending(source, provider, error):
    transport = _RecordingTransport()
    pipeline = _pipeline(source, provider=provider, transport=transport)

    with pytest.raises(error):
        pipeline.run_tick(now=NOW)
    assert transport.sent == []


def test_run_tick_safely_swallows_and_logs(caplog):
    transport = _RecordingTransport()
    pipeline = _pipeline(_StubSource([]), transport=transport)

    with caplog.at_level("ERROR", logger="tech_digest"):
        assert pipeline.run_tick_safely() is None

    assert transport.sent == []
    assert any("Error processing news" in r.getMessage() for r in caplog.records)


def test_lock_released_after_failed_tick():
    source = _StubSource([])
    pipeline = _pipeline(source)
    with pytest.raises(NoCandidatesError):
        pipeline.run_tick(now=NOW)

    source.articles = [_article()]
    assert pipeline.run_tick(now=NOW).status == "sent"


def test_overlapping_tick_is_skipped():
    gate = threading.Event()
    source = _StubSource([_article()], gate=gate)
    transport = _RecordingTransport()
    pipeline = _pipeline(source, transport=transport, subscribers=(1,))

    results = []
    worker = threading.Thread(target=lambda: results.append(pipeline.run_tick(now=NOW)))
    worker.start()
    assert source.entered.wait(2)

    skipped = pipeline.run_tick(now=NOW)
    assert skipped.status == "skipped"

    gate.set()
    worker.join(5)
    assert results[0].status == "sent"
    assert len(transport.sent) == 1


def test_preview_does_not_send():
    transport = _RecordingTransport()
    pipeline = _pipeline(_StubSource([_article()]), transport=transport)
    message = pipeline.preview(now=NOW)
    assert message.startswith("<b>📰 Cloud AI platform launches</b>")
    assert transport.sent == []
