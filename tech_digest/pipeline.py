"""
Digest pipeline orchestration.

Each tick runs:
1. Fetch candidate articles from the news source
2. Select and normalize one article
3. Extract key terms and translations via the language model
4. Render the Telegram message
5. Send it to every subscriber in a registry snapshot

Failures in steps 1-3 abort the tick before anything is sent. A failed send
is logged and the fan-out continues with the next subscriber. At most one
tick runs at a time; an overlapping call is skipped.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import threading

from .analyzers.extractor import DigestExtractor
from .core.registry import SubscriberRegistry
from .core.types import Article, Digest, TickReport
from .errors import DigestError, SendError
from .llm.tracing import record_span_error, set_span_output, start_span
from .logging_utils import log_event
from .news.base import ArticleSource
from .output.formatter import format_message
from .selection.selector import select_article
from .transport.base import MessageTransport

logger = logging.getLogger(__name__)


class DigestPipeline:
    """Run one fetch-select-extract-format-broadcast cycle per tick.

    Args:
        source: Candidate article source
        extractor: Key-term extractor backed by a language model
        transport: Outbound message delivery
        registry: Subscriber registry shared with the inbound-event handler
        language: Language code passed to the news source
        content_format: Format hint passed to the transport
    """

    def __init__(
        self,
        source: ArticleSource,
        extractor: DigestExtractor,
        transport: MessageTransport,
        registry: SubscriberRegistry,
        language: str = "en",
        content_format: str = "html",
    ) -> None:
        self.source = source
        self.extractor = extractor
        self.transport = transport
        self.registry = registry
        self.language = language
        self.content_format = content_format
        self._running = threading.Lock()

    def prepare(self, now: datetime | None = None) -> tuple[Article, Digest, str]:
        """Fetch, select, extract and render without sending.

        Raises:
            DigestError: If fetching, selection or extraction fails
        """
        candidates = self.source.fetch_candidates(self.language)
        article = select_article(candidates, now=now)
        log_event(
            logger,
            f"Selected article: {article.title}",
            event="article_selected",
            title=article.title,
            source=article.source_name,
            candidates=len(candidates),
        )

        digest = self.extractor.extract(article)
        log_event(
            logger,
            f"Extracted {len(digest.terms)} terms",
            event="digest_extracted",
            keywords=digest.keywords,
            translated=len(digest.translations),
        )
        return article, digest, format_message(article, digest)

    def preview(self, now: datetime | None = None) -> str:
        """Return the message the next tick would send."""
        _, _, message = self.prepare(now)
        return message

    def run_tick(self, now: datetime | None = None) -> TickReport:
        """Run one full tick.

        Returns:
            TickReport with delivery counts, or status "skipped" if a tick
            was already running

        Raises:
            DigestError: If fetching, selection or extraction fails; nothing
                is sent in that case
        """
        if not self._running.acquire(blocking=False):
            log_event(
                logger,
                "Previous tick still running; skipping",
                level=logging.WARNING,
                event="tick_skipped",
            )
            return TickReport(status="skipped")

        try:
            return self._run_tick(now)
        finally:
            self._running.release()

    def _run_tick(self, now: datetime | None) -> TickReport:
        report = TickReport(status="sent", started_at=datetime.now(timezone.utc))
        log_event(logger, "Tick start", event="tick_start", language=self.language)

        with start_span("tech_digest.tick", input_value={"language": self.language}) as span:
            try:
                article, _, message = self.prepare(now)
            except DigestError as exc:
                record_span_error(span, exc)
                raise

            report.article_title = article.title
            recipients = self.registry.list()
            report.recipients = len(recipients)

            for subscriber_id in recipients:
                try:
                    self.transport.send(subscriber_id, message, self.content_format)
                except SendError as exc:
                    report.failed.append(subscriber_id)
                    log_event(
                        logger,
                        f"Error sending message to user {subscriber_id}: {exc}",
                        level=logging.WARNING,
                        event="send_failed",
                        subscriber_id=str(subscriber_id),
                    )
                    continue
                report.delivered += 1

            report.finished_at = datetime.now(timezone.utc)
            set_span_output(span, {"delivered": report.delivered, "failed": len(report.failed)})

        log_event(
            logger,
            f"Successfully processed and sent article: {article.title} "
            f"({report.delivered}/{report.recipients} delivered)",
            event="tick_done",
            title=article.title,
            recipients=report.recipients,
            delivered=report.delivered,
            failed_count=len(report.failed),
        )
        return report

    def run_tick_safely(self) -> TickReport | None:
        """Scheduler entry point: run a tick and log, never raise."""
        try:
            return self.run_tick()
        except DigestError as exc:
            log_event(
                logger,
                f"Error processing news: {exc}",
                level=logging.ERROR,
                event="tick_aborted",
                error_type=type(exc).__name__,
            )
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error during tick")
        return None
