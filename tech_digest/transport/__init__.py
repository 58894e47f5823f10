"""Messaging transports and inbound subscription events."""

from .base import MessageTransport
from .telegram import TelegramApiError, TelegramBot, TelegramClient, TelegramTransport

__all__ = [
    "MessageTransport",
    "TelegramApiError",
    "TelegramBot",
    "TelegramClient",
    "TelegramTransport",
]
