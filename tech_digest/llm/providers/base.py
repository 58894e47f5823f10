"""Abstract interface for language-model completion backends."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CompletionProvider(ABC):
    """Provider interface: one prompt in, one response text out."""

    name: str = "provider"

    @abstractmethod
    def request_completion(self, prompt: str) -> str:
        """Return the model's response text.

        Raises:
            ModelRequestError: If the upstream call fails or returns no text
        """
        raise NotImplementedError
