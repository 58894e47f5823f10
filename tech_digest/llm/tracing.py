"""
Langfuse tracing for digest ticks and model calls.

setup_langfuse() is called once by the CLI. Until then, or when tracing is
disabled, start_span() yields None and the other helpers do nothing. A
tracing failure is logged at debug level and never breaks a tick.
"""

from __future__ import annotations

from contextlib import contextmanager
import json
import logging
import os
from typing import Any, Iterator

from ..config import LangfuseConfig
from ..logging_utils import redact_text, truncate_text

logger = logging.getLogger(__name__)

_client = None
_settings: LangfuseConfig | None = None


def setup_langfuse(cfg: LangfuseConfig) -> None:
    """Create the Langfuse client when cfg.enabled is set."""
    global _client, _settings  # noqa: PLW0603
    _settings = cfg
    _client = None
    if not cfg.enabled:
        return
    try:
        from langfuse import Langfuse  # type: ignore
    except ImportError:
        logger.warning("Langfuse tracing is enabled but langfuse is not installed (pip install tech-digest[tracing])")
        return

    _client = Langfuse(
        public_key=cfg.public_key or os.getenv("LANGFUSE_PUBLIC_KEY"),
        secret_key=cfg.secret_key or os.getenv("LANGFUSE_SECRET_KEY"),
        host=cfg.host or os.getenv("LANGFUSE_HOST"),
        environment=cfg.environment or os.getenv("LANGFUSE_ENVIRONMENT"),
        release=cfg.release or os.getenv("LANGFUSE_RELEASE"),
    )
    logger.info("Langfuse tracing enabled")


@contextmanager
def start_span(name: str, input_value: Any = None, **metadata: Any) -> Iterator[Any | None]:
    """Open a span around the block; yields None when tracing is off.

    Metadata values that are not JSON scalars are stringified and None
    values are dropped.
    """
    client = _client
    if client is None:
        yield None
        return

    meta = {
        key: value if isinstance(value, (str, int, float, bool)) else str(value)
        for key, value in metadata.items()
        if value is not None
    }
    try:
        span_cm = client.start_as_current_span(name=name, input=_payload(input_value), metadata=meta)
        span = span_cm.__enter__()
    except Exception as exc:  # noqa: BLE001
        logger.debug("Could not open span %s: %s", name, exc)
        yield None
        return

    # Exceptions from the block propagate; the span is closed either way.
    try:
        yield span
    finally:
        try:
            span_cm.__exit__(None, None, None)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Could not close span %s: %s", name, exc)


def set_span_output(span: Any | None, output_value: Any) -> None:
    payload = _payload(output_value)
    if span is not None and payload is not None:
        _update(span, output=payload)


def record_span_error(span: Any | None, exc: Exception) -> None:
    if span is not None:
        _update(span, level="ERROR", status_message=f"{type(exc).__name__}: {exc}")


def flush() -> None:
    """Send buffered spans; called on CLI exit."""
    if _client is None:
        return
    try:
        _client.flush()
    except Exception as exc:  # noqa: BLE001
        logger.debug("Langfuse flush failed: %s", exc)


def _payload(value: Any) -> str | None:
    if value is None:
        return None
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
    if _settings is None:
        return text
    return truncate_text(redact_text(text, _settings.redaction), _settings.max_text_chars)


def _update(span: Any, **fields: Any) -> None:
    try:
        span.update(**fields)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Langfuse span update failed: %s", exc)
