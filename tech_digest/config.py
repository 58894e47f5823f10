"""
Configuration management using YAML files, environment variables and
dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- NewsConfig: News API query and HTTP settings
- ProviderConfig: LLM provider settings
- ExtractionConfig: Key-term extraction prompt settings
- TelegramConfig: Telegram Bot API settings
- SubscribersConfig: Subscriber persistence
- ScheduleConfig: Cron schedule for pipeline ticks
- LoggingConfig: Logging behavior
- LangfuseConfig: Langfuse tracing settings
- AppConfig: Root configuration container

Environment variables NEWS_LANGUAGE, NEWS_CATEGORY and SCHEDULE_TIME
override the matching YAML values. Secrets are read from the environment
variables named in each section.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any, Mapping

import yaml

from .errors import ConfigError


@dataclass
class NewsConfig:
    """Configuration for the NewsAPI candidate fetch.

    Attributes:
        base_url: NewsAPI "everything" endpoint
        api_key_env: Environment variable name containing the API key
        api_key: Optional inline API key (overrides env var)
        language: Two-letter language code for articles
        query: Search query sent as "q"
        page_size: Number of candidates fetched per tick
        domains: Domain allowlist; dropped on fallback when nothing matches
        timeout_seconds: HTTP request timeout
        retries: Number of retry attempts for failed requests
        trust_env: Whether to respect system proxy settings
    """

    base_url: str = "https://newsapi.org/v2/everything"
    api_key_env: str = "NEWS_API_KEY"
    api_key: str | None = None
    language: str = "en"
    query: str = "technology"
    page_size: int = 10
    domains: list[str] = field(
        default_factory=lambda: [
            "techcrunch.com",
            "theverge.com",
            "wired.com",
            "arstechnica.com",
            "engadget.com",
            "zdnet.com",
            "venturebeat.com",
            "thenextweb.com",
        ]
    )
    timeout_seconds: float = 10.0
    retries: int = 2
    trust_env: bool = True


@dataclass
class ProviderConfig:
    """Configuration for LLM provider.

    Attributes:
        name: Provider name ("openai", "openai_compatible" or "gemini")
        model: Model identifier
        api_key_env: Environment variable name containing the API key
        base_url: Base URL for the provider API
        api_key: Optional inline API key (overrides env var)
        temperature: Sampling temperature
        max_output_tokens: Upper bound on response length
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings for API requests
    """

    name: str = "openai"
    model: str = "gpt-3.5-turbo"
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str = "https://api.openai.com/v1"
    api_key: str | None = None
    temperature: float = 0.2
    max_output_tokens: int = 512
    timeout_seconds: float = 30.0
    trust_env: bool = True


@dataclass
class ExtractionConfig:
    """Configuration for key-term extraction.

    Attributes:
        keyword_count: Number of terms requested from the model
        target_language: Language the terms are translated into
        max_chars: Maximum characters of article text sent to the model
    """

    keyword_count: int = 5
    target_language: str = "Russian"
    max_chars: int = 12000


@dataclass
class TelegramConfig:
    """Configuration for the Telegram Bot API.

    Attributes:
        base_url: Bot API base URL
        token_env: Environment variable name containing the bot token
        token: Optional inline token (overrides env var)
        poll_timeout_seconds: Long-poll timeout for getUpdates
        skip_pending_updates: Drop updates queued before startup
        disable_web_page_preview: Whether to suppress link previews
        welcome_message: Reply sent to new subscribers on /start
        timeout_seconds: HTTP timeout for sendMessage
    """

    base_url: str = "https://api.telegram.org"
    token_env: str = "TELEGRAM_BOT_TOKEN"
    token: str | None = None
    poll_timeout_seconds: int = 30
    skip_pending_updates: bool = True
    disable_web_page_preview: bool = False
    welcome_message: str = (
        "Привет! Я буду присылать тебе дайджест технологических новостей. "
        "Жди первую новость!"
    )
    timeout_seconds: float = 15.0


@dataclass
class SubscribersConfig:
    """Configuration for subscriber persistence.

    Attributes:
        db_path: SQLite file for subscriber ids; None keeps them in memory only
    """

    db_path: str | None = "data/users.db"


@dataclass
class ScheduleConfig:
    """Configuration for the pipeline schedule.

    Attributes:
        cron: Five-field cron expression
        timezone: IANA timezone for the cron expression; None uses local time
    """

    cron: str = "0 9 * * *"
    timezone: str | None = None


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        directory: Directory for the log file
        filename: Name of the main log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    directory: str = "logs"
    filename: str = "tech_digest.jsonl"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse tracing.

    Attributes:
        enabled: Whether to enable Langfuse tracing
        public_key: Langfuse public key (optional)
        secret_key: Langfuse secret key (optional)
        host: Langfuse host URL (optional)
        environment: Langfuse environment label (optional)
        release: Langfuse release identifier (optional)
        redaction: Redaction mode for traced payloads ("none", "urls", "all")
        max_text_chars: Maximum characters for prompt/response payloads
    """

    enabled: bool = False
    public_key: str | None = None
    secret_key: str | None = None
    host: str | None = None
    environment: str | None = None
    release: str | None = None
    redaction: str = "urls"
    max_text_chars: int = 20000


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    news: NewsConfig = field(default_factory=NewsConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    subscribers: SubscribersConfig = field(default_factory=SubscribersConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)


_SECTIONS: dict[str, type] = {
    "news": NewsConfig,
    "provider": ProviderConfig,
    "extraction": ExtractionConfig,
    "telegram": TelegramConfig,
    "subscribers": SubscribersConfig,
    "schedule": ScheduleConfig,
    "logging": LoggingConfig,
    "langfuse": LangfuseConfig,
}

# Single-value environment knobs that override YAML settings.
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "NEWS_LANGUAGE": ("news", "language"),
    "NEWS_CATEGORY": ("news", "query"),
    "SCHEDULE_TIME": ("schedule", "cron"),
}


def load_config(path: str | None, env: Mapping[str, str] | None = None) -> AppConfig:
    """Load configuration from a YAML file with defaults and env overrides."""
    raw: dict[str, Any] = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

    cfg = _merge_config(AppConfig(), raw)
    apply_env_overrides(cfg, os.environ if env is None else env)
    return cfg


def apply_env_overrides(cfg: AppConfig, env: Mapping[str, str]) -> None:
    for env_key, (section, attr) in _ENV_OVERRIDES.items():
        value = env.get(env_key)
        if value:
            setattr(getattr(cfg, section), attr, value)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig, ignoring unknown keys."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            known = {k: v for k, v in value.items() if k in data[key]}
            data[key].update(known)
        elif value is not None:
            raise ConfigError(f"Config section '{key}' must be a mapping")
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(**{name: cls(**data[name]) for name, cls in _SECTIONS.items()})


def _resolve_secret(inline: str | None, env_key: str) -> str | None:
    if inline:
        return inline
    return os.getenv(env_key)


def get_api_key(cfg: ProviderConfig) -> str | None:
    """Get LLM API key from inline config or environment variable."""
    return _resolve_secret(cfg.api_key, cfg.api_key_env)


def get_news_api_key(cfg: NewsConfig) -> str | None:
    """Get NewsAPI key from inline config or environment variable."""
    return _resolve_secret(cfg.api_key, cfg.api_key_env)


def get_telegram_token(cfg: TelegramConfig) -> str | None:
    """Get Telegram bot token from inline config or environment variable."""
    return _resolve_secret(cfg.token, cfg.token_env)


def require(value: str | None, env_key: str) -> str:
    """Return value or raise ConfigError naming the missing variable."""
    if not value:
        raise ConfigError(f"required environment variable {env_key} is not set")
    return value
