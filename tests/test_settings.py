from __future__ import annotations

import logging
import os

import pytest

import settings
from app import _RedactingFormatter, _collect_redaction_values
from core.config import ConfigError


def test_defaults() -> None:
    loaded = settings.load_settings({})

    assert loaded.port == 3000
    assert loaded.album_window == 1.0
    assert loaded.correlation_max_entries == 0
    assert loaded.openai_model == "gpt-4o-mini"
    assert loaded.target_language == "Korean"
    assert loaded.prompts_path == settings.DEFAULT_PROMPTS_PATH
    assert loaded.logging.level == "INFO"
    assert loaded.logging.file_path is None
    assert "OPENAI_API_KEY" in loaded.logging.redact


def test_overrides() -> None:
    loaded = settings.load_settings(
        {
            "PORT": "8080",
            "ALBUM_WINDOW_SECONDS": "2.5",
            "CORRELATION_MAX_ENTRIES": "10000",
            "PROMPTS_PATH": "config/prompts.json",
            "LOG_LEVEL": "debug",
            "LOG_FILE": "/var/log/teleglot.log",
            "LOG_REDACT": "API_HASH, CUSTOM",
        }
    )

    assert loaded.port == 8080
    assert loaded.album_window == 2.5
    assert loaded.correlation_max_entries == 10000
    assert loaded.prompts_path == os.path.join(settings.PROJECT_ROOT, "config/prompts.json")
    assert loaded.logging.level == "DEBUG"
    assert loaded.logging.file_path == "/var/log/teleglot.log"
    assert loaded.logging.redact == ("API_HASH", "CUSTOM")


def test_invalid_numbers_are_config_errors() -> None:
    with pytest.raises(ConfigError, match="PORT"):
        settings.load_settings({"PORT": "eighty"})
    with pytest.raises(ConfigError, match="ALBUM_WINDOW_SECONDS"):
        settings.load_settings({"ALBUM_WINDOW_SECONDS": "0"})


def test_redacting_formatter_masks_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_HASH", "abc123")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-abc123456")
    secrets = _collect_redaction_values(("API_HASH", "OPENAI_API_KEY", "UNSET_VAR"))
    formatter = _RedactingFormatter(secrets, fmt="%(message)s")

    record = logging.LogRecord("t", logging.INFO, __file__, 1, "key=%s", ("sk-abc123456",), None)

    assert formatter.format(record) == "key=***"
