"""
Logging setup: Rich console output plus an optional JSON-lines file.

Structured fields are attached with log_event(logger, msg, event=..., ...),
which passes them through `extra`. The console shows only the message; the
JSONL file keeps every field for later querying.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import re
from typing import Any

from rich.logging import RichHandler

from .config import LoggingConfig


LOGGER_NAME = "tech_digest"

_URL_RE = re.compile(r"https?://\S+")

# Attributes every LogRecord carries; anything else came in through `extra`.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def setup_logging(cfg: LoggingConfig, log_dir: Path | None = None) -> logging.Logger:
    """Configure the package logger from cfg and return it.

    Handlers are replaced on every call, so calling twice does not duplicate
    output.
    """
    level = _parse_level(cfg.level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers = []
    logger.propagate = False

    if cfg.console:
        console = RichHandler(rich_tracebacks=True, show_path=False)
        console.setLevel(level)
        logger.addHandler(console)

    if cfg.file:
        directory = log_dir if log_dir is not None else Path(cfg.directory)
        directory.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(directory / cfg.filename, encoding="utf-8")
        handler.setLevel(level)
        if cfg.format == "jsonl":
            handler.setFormatter(JsonlFormatter())
        else:
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)

    return logger


def log_event(logger: logging.Logger | None, message: str, level: int = logging.INFO, **fields: Any) -> None:
    if logger is not None:
        logger.log(level, message, extra=fields)


def redact_text(text: str, mode: str) -> str:
    """Apply a trace redaction mode: "none", "urls" or "all"."""
    if mode == "all":
        return ""
    if mode == "urls":
        return _URL_RE.sub("[REDACTED_URL]", text)
    return text


def truncate_text(text: str, max_chars: int = 20000) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "...(truncated)"


class JsonlFormatter(logging.Formatter):
    """One JSON object per record, including `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO
