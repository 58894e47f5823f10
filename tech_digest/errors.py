"""
Error taxonomy for the digest pipeline.

Errors raised while fetching, selecting or extracting abort the current tick.
SendError is isolated per subscriber and never aborts the fan-out.
"""

from __future__ import annotations

from typing import Hashable


class DigestError(Exception):
    """Base class for failures inside a pipeline tick."""


class FetchError(DigestError):
    """The news source could not be reached or returned an unusable payload."""


class NoCandidatesError(DigestError):
    """The news source returned zero usable articles."""


class ModelRequestError(DigestError):
    """The language model call failed."""


class EmptyExtractionError(DigestError):
    """The model response contained no parsable keywords."""

    def __init__(self, message: str, response: str = "") -> None:
        super().__init__(message)
        self.response = response


class SendError(DigestError):
    """Delivery to a single subscriber failed."""

    def __init__(self, subscriber_id: Hashable, message: str) -> None:
        super().__init__(f"Send to {subscriber_id} failed: {message}")
        self.subscriber_id = subscriber_id


class ConfigError(ValueError):
    """Configuration is missing or invalid at startup."""
