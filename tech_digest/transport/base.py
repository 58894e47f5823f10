"""Abstract interface for outbound message delivery."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Hashable


class MessageTransport(ABC):
    """Delivers one rendered message to one subscriber."""

    @abstractmethod
    def send(self, subscriber_id: Hashable, text: str, content_format: str = "html") -> None:
        """Send text to a subscriber.

        Raises:
            SendError: If delivery to this subscriber failed
        """
        raise NotImplementedError
