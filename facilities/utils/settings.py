"""Runtime settings sourced from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    sql_echo: bool
    default_page_size: int
    max_page_size: int
    log_level: str


def _normalize_bool(value: str | None, default: bool = False) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _positive_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return the cached settings built from environment variables."""
    default_page_size = _positive_int(os.getenv("EAV_DEFAULT_PAGE_SIZE"), 10)
    max_page_size = _positive_int(os.getenv("EAV_MAX_PAGE_SIZE"), 100)
    return Settings(
        sql_echo=_normalize_bool(os.getenv("SQL_ECHO"), default=False),
        default_page_size=min(default_page_size, max_page_size),
        max_page_size=max_page_size,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_settings.cache_clear()


def configure_logging() -> None:
    """Apply LOG_LEVEL to the root logger for scripts and service entry points."""
    level_name = get_settings().log_level
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level)
    logging.getLogger("facilities").setLevel(level)
