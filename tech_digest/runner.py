"""
Wiring for the long-running service and one-off runs.

serve() starts two background activities that share only the subscriber
registry: the Telegram polling loop and the cron scheduler. Both stop when
the shared stop event is set (SIGINT/SIGTERM in the CLI).
"""

from __future__ import annotations

import logging
from pathlib import Path
import threading

from .analyzers.extractor import DigestExtractor
from .config import (
    AppConfig,
    get_news_api_key,
    get_telegram_token,
    require,
)
from .core.registry import SubscriberRegistry
from .core.store import SqliteSubscriberStore
from .core.types import TickReport
from .llm.providers.factory import create_provider
from .news.newsapi import NewsApiSource
from .pipeline import DigestPipeline
from .scheduler import CronScheduler
from .transport.base import MessageTransport
from .transport.telegram import TelegramBot, TelegramClient, TelegramTransport

logger = logging.getLogger(__name__)


def build_registry(cfg: AppConfig) -> SubscriberRegistry:
    store = None
    if cfg.subscribers.db_path:
        store = SqliteSubscriberStore(Path(cfg.subscribers.db_path))
    return SubscriberRegistry(store=store)


def build_telegram_client(cfg: AppConfig) -> TelegramClient:
    token = require(get_telegram_token(cfg.telegram), cfg.telegram.token_env)
    return TelegramClient(token, cfg.telegram)


def build_pipeline(
    cfg: AppConfig,
    registry: SubscriberRegistry,
    transport: MessageTransport,
) -> DigestPipeline:
    news_key = require(get_news_api_key(cfg.news), cfg.news.api_key_env)
    source = NewsApiSource(cfg.news, news_key)
    extractor = DigestExtractor(create_provider(cfg.provider), cfg.extraction)
    return DigestPipeline(
        source=source,
        extractor=extractor,
        transport=transport,
        registry=registry,
        language=cfg.news.language,
    )


def run_once(cfg: AppConfig, dry_run: bool = False) -> TickReport | str:
    """Run a single tick now. With dry_run, return the message instead of sending it."""
    registry = build_registry(cfg)
    if dry_run:
        pipeline = build_pipeline(cfg, registry, _NullTransport())
        return pipeline.preview()

    client = build_telegram_client(cfg)
    try:
        pipeline = build_pipeline(cfg, registry, TelegramTransport(client, cfg.telegram))
        return pipeline.run_tick()
    finally:
        client.close()


def serve(cfg: AppConfig, stop_event: threading.Event) -> None:
    """Run the bot and the scheduler until stop_event is set."""
    registry = build_registry(cfg)
    client = build_telegram_client(cfg)
    pipeline = build_pipeline(cfg, registry, TelegramTransport(client, cfg.telegram))
    bot = TelegramBot(client, registry, cfg.telegram)
    scheduler = CronScheduler(cfg.schedule.cron, pipeline.run_tick_safely, cfg.schedule.timezone)

    poller = threading.Thread(target=bot.run, args=(stop_event,), name="tech-digest-bot", daemon=True)
    poller.start()
    scheduler.start()
    logger.info(
        "Bot started. Scheduled to run at %s (next: %s), %d subscribers",
        cfg.schedule.cron,
        scheduler.next_run().isoformat(),
        registry.count(),
    )

    try:
        stop_event.wait()
    finally:
        logger.info("Shutting down...")
        scheduler.stop(timeout=5)
        # The poller exits after its current long poll; it is a daemon thread.
        poller.join(timeout=1)
        if not poller.is_alive():
            client.close()


class _NullTransport(MessageTransport):
    def send(self, subscriber_id, text, content_format="html") -> None:  # noqa: ANN001
        return None
