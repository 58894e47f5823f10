"""
Telegram Bot API transport.

TelegramClient is a thin httpx wrapper over the Bot API methods used here.
TelegramTransport delivers digests with sendMessage. TelegramBot long-polls
getUpdates and registers every chat that sends /start.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Hashable

import httpx

from ..config import TelegramConfig
from ..core.registry import SubscriberRegistry
from ..errors import SendError
from .base import MessageTransport

logger = logging.getLogger(__name__)


_PARSE_MODES = {"html": "HTML", "markdown": "MarkdownV2", "text": None}

START_COMMAND = "/start"


class TelegramApiError(Exception):
    """The Bot API answered with ok=false."""

    def __init__(self, method: str, description: str, error_code: int | None = None) -> None:
        super().__init__(f"{method} failed ({error_code}): {description}")
        self.method = method
        self.description = description
        self.error_code = error_code


class TelegramClient:
    """Minimal Bot API client.

    Args:
        token: Bot token
        cfg: Telegram settings
        http_client: Optional preconfigured client, mainly for tests. When
            omitted, a client is created and owned by this instance.
    """

    def __init__(
        self,
        token: str,
        cfg: TelegramConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not token:
            raise ValueError("Missing Telegram bot token")
        self.cfg = cfg
        self._base = f"{cfg.base_url.rstrip('/')}/bot{token}"
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=cfg.timeout_seconds)

    def call(self, method: str, payload: dict[str, Any], timeout: float | None = None) -> Any:
        kwargs: dict[str, Any] = {"json": payload}
        if timeout is not None:
            kwargs["timeout"] = timeout
        resp = self._http.post(f"{self._base}/{method}", **kwargs)
        try:
            data = resp.json()
        except ValueError:
            resp.raise_for_status()
            raise TelegramApiError(method, "non-JSON response", resp.status_code)
        if not data.get("ok"):
            raise TelegramApiError(method, data.get("description", "unknown error"), data.get("error_code"))
        return data.get("result")

    def send_message(
        self,
        chat_id: Hashable,
        text: str,
        parse_mode: str | None = "HTML",
        disable_web_page_preview: bool = False,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": disable_web_page_preview,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return self.call("sendMessage", payload)

    def get_updates(self, offset: int | None, timeout: int) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        return self.call("getUpdates", payload, timeout=timeout + 10) or []

    def close(self) -> None:
        if self._owns_client:
            self._http.close()


class TelegramTransport(MessageTransport):
    """Send rendered digests through sendMessage."""

    def __init__(self, client: TelegramClient, cfg: TelegramConfig) -> None:
        self.client = client
        self.cfg = cfg

    def send(self, subscriber_id: Hashable, text: str, content_format: str = "html") -> None:
        if content_format not in _PARSE_MODES:
            raise ValueError(f"Unsupported content format: {content_format}")
        try:
            self.client.send_message(
                subscriber_id,
                text,
                parse_mode=_PARSE_MODES[content_format],
                disable_web_page_preview=self.cfg.disable_web_page_preview,
            )
        except (httpx.HTTPError, TelegramApiError) as exc:
            raise SendError(subscriber_id, str(exc)) from exc


class TelegramBot:
    """Long-poll inbound updates and register subscribers on /start."""

    def __init__(
        self,
        client: TelegramClient,
        registry: SubscriberRegistry,
        cfg: TelegramConfig,
    ) -> None:
        self.client = client
        self.registry = registry
        self.cfg = cfg
        self._offset: int | None = None

    def run(self, stop_event: threading.Event) -> None:
        """Poll until stop_event is set. Each poll is bounded by the poll timeout."""
        if self.cfg.skip_pending_updates:
            self._skip_pending()
        logger.info("Bot started and ready to receive messages")

        backoff = 1.0
        while not stop_event.is_set():
            try:
                updates = self.client.get_updates(self._offset, self.cfg.poll_timeout_seconds)
            except (httpx.HTTPError, TelegramApiError) as exc:
                logger.warning("getUpdates failed: %s; retrying in %.0fs", exc, backoff)
                stop_event.wait(backoff)
                backoff = min(backoff * 2, 60.0)
                continue
            backoff = 1.0
            for update in updates:
                if stop_event.is_set():
                    break
                self.handle_update(update)
        logger.info("Bot polling stopped")

    def _skip_pending(self) -> None:
        try:
            pending = self.client.get_updates(offset=-1, timeout=0)
        except (httpx.HTTPError, TelegramApiError) as exc:
            logger.warning("Could not skip pending updates: %s", exc)
            return
        if pending:
            self._offset = pending[-1]["update_id"] + 1
            logger.info("Skipped pending updates up to %d", self._offset - 1)

    def handle_update(self, update: dict[str, Any]) -> None:
        update_id = update.get("update_id")
        if isinstance(update_id, int):
            self._offset = update_id + 1

        message = update.get("message")
        if not message or not _is_command(message.get("text"), START_COMMAND):
            return

        chat_id = message["chat"]["id"]
        sender = message.get("from") or {}
        name = sender.get("username") or sender.get("first_name")
        is_new = self.registry.add(chat_id, name)
        logger.info("/start from chat %s (new=%s)", chat_id, is_new)

        try:
            self.client.send_message(chat_id, self.cfg.welcome_message, parse_mode=None)
        except (httpx.HTTPError, TelegramApiError) as exc:
            logger.warning("Welcome message to %s failed: %s", chat_id, exc)


def _is_command(text: str | None, command: str) -> bool:
    parts = (text or "").split(maxsplit=1)
    if not parts:
        return False
    return parts[0].split("@", 1)[0] == command
