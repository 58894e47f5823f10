"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from tech_digest.config import AppConfig, get_telegram_token, load_config, require
from tech_digest.errors import ConfigError


def test_defaults_without_file():
    cfg = load_config(None, env={})
    assert isinstance(cfg, AppConfig)
    assert cfg.news.language == "en"
    assert cfg.news.query == "technology"
    assert cfg.schedule.cron == "0 9 * * *"
    assert cfg.extraction.keyword_count == 5
    assert cfg.provider.name == "openai"


def test_yaml_values_merge_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "news:\n"
        "  language: de\n"
        "  unknown_key: ignored\n"
        "schedule:\n"
        "  cron: '30 7 * * 1-5'\n"
        "  timezone: Europe/Berlin\n"
        "extra_section:\n"
        "  foo: bar\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path), env={})

    assert cfg.news.language == "de"
    assert cfg.news.query == "technology"
    assert cfg.schedule.cron == "30 7 * * 1-5"
    assert cfg.schedule.timezone == "Europe/Berlin"
    assert not hasattr(cfg.news, "unknown_key")


def test_env_overrides_win_over_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("news:\n  language: de\n", encoding="utf-8")

    cfg = load_config(
        str(path),
        env={"NEWS_LANGUAGE": "fr", "NEWS_CATEGORY": "startups", "SCHEDULE_TIME": "0 18 * * *"},
    )

    assert cfg.news.language == "fr"
    assert cfg.news.query == "startups"
    assert cfg.schedule.cron == "0 18 * * *"


def test_empty_env_values_do_not_override():
    cfg = load_config(None, env={"NEWS_LANGUAGE": ""})
    assert cfg.news.language == "en"


def test_non_mapping_section_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("news: technology\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="news"):
        load_config(str(path), env={})


def test_non_mapping_file_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path), env={})


def test_token_comes_from_env(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    cfg = load_config(None, env={})
    assert get_telegram_token(cfg.telegram) == "123:abc"


def test_require_names_missing_variable():
    with pytest.raises(ConfigError, match="TELEGRAM_BOT_TOKEN"):
        require(None, "TELEGRAM_BOT_TOKEN")
    assert require("x", "TELEGRAM_BOT_TOKEN") == "x"
