"""Runtime settings for teleglot.

Everything is read from the environment (optionally seeded from a .env file)
so deployments only need to set variables. Routing variables are parsed by
core.routes; this module covers the rest.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from core.config import ConfigError

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Prompt catalog lives next to .env by default.
DEFAULT_PROMPTS_PATH = os.path.join(PROJECT_ROOT, "prompts.json")

DEFAULT_REDACT = ("API_HASH", "OPENAI_API_KEY", "SESSION_STRING")


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    file_path: Optional[str]
    max_bytes: int
    backup_count: int
    redact: tuple[str, ...]


@dataclass(frozen=True)
class Settings:
    prompts_path: str
    health_host: str
    port: int
    album_window: float
    # 0 keeps every correlation for the process lifetime.
    correlation_max_entries: int
    openai_api_key: Optional[str]
    openai_model: str
    openai_base_url: Optional[str]
    openai_timeout: float
    target_language: str
    logging: LoggingSettings


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return value


def _str(env: Mapping[str, str], key: str, default: Optional[str] = None) -> Optional[str]:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from ``env`` (defaults to .env + os.environ)."""

    if env is None:
        load_dotenv()
        env = os.environ

    redact_raw = _str(env, "LOG_REDACT")
    if redact_raw is None:
        redact = DEFAULT_REDACT
    else:
        redact = tuple(name.strip() for name in redact_raw.split(",") if name.strip())

    log_file = _str(env, "LOG_FILE")

    return Settings(
        prompts_path=_resolve_path(_str(env, "PROMPTS_PATH", DEFAULT_PROMPTS_PATH)),
        health_host=_str(env, "HEALTH_HOST", "0.0.0.0"),
        port=_int(env, "PORT", 3000),
        album_window=_float(env, "ALBUM_WINDOW_SECONDS", 1.0),
        correlation_max_entries=max(_int(env, "CORRELATION_MAX_ENTRIES", 0), 0),
        openai_api_key=_str(env, "OPENAI_API_KEY"),
        openai_model=_str(env, "OPENAI_MODEL", "gpt-4o-mini"),
        openai_base_url=_str(env, "OPENAI_BASE_URL"),
        openai_timeout=_float(env, "OPENAI_TIMEOUT", 60.0),
        target_language=_str(env, "TARGET_LANGUAGE", "Korean"),
        logging=LoggingSettings(
            level=(_str(env, "LOG_LEVEL", "INFO") or "INFO").upper(),
            file_path=_resolve_path(log_file) if log_file else None,
            max_bytes=_int(env, "LOG_FILE_MAX_BYTES", 5 * 1024 * 1024),
            backup_count=_int(env, "LOG_FILE_BACKUP_COUNT", 5),
            redact=redact,
        ),
    )
