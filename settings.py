from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


DEFAULT_FEED_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vQd963Q6VuLwBc2ZY5Ll_37AbrH0dbemKBEH4SNWtR1jHkWYARbf9jPvGuBzjtwT8kbJZUEk5TPWZBh"
    "/pub?output=csv"
)
DEFAULT_WEBHOOK_URL = "https://hook.eu1.make.com/ctn37dg9urwlnn3y5c8hqie9ddwbq1g1"
DEFAULT_LOCATION = "Taman Sri Rambai Node #001"

_FEED_URL_ENV = "TRASHRAKE_FEED_URL"
_WEBHOOK_URL_ENV = "TRASHRAKE_WEBHOOK_URL"
_LOCATION_ENV = "TRASHRAKE_LOCATION"
_POLL_INTERVAL_ENV = "TRASHRAKE_POLL_INTERVAL"
_RETRY_ATTEMPTS_ENV = "TRASHRAKE_RETRY_ATTEMPTS"
_RETRY_DELAY_ENV = "TRASHRAKE_RETRY_DELAY"
_COOLDOWN_ENV = "TRASHRAKE_ALERT_COOLDOWN"
_HTTP_TIMEOUT_ENV = "TRASHRAKE_HTTP_TIMEOUT"
_AUDIO_ENV = "TRASHRAKE_AUDIO_ENABLED"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    feed_url: str
    webhook_url: Optional[str]
    location: str
    poll_interval: float
    retry_attempts: int
    retry_delay: float
    alert_cooldown: float
    http_timeout: float
    audio_enabled: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        feed_url=_read_str_env(_FEED_URL_ENV, DEFAULT_FEED_URL),
        webhook_url=_read_optional_env(_WEBHOOK_URL_ENV, DEFAULT_WEBHOOK_URL),
        location=_read_str_env(_LOCATION_ENV, DEFAULT_LOCATION),
        poll_interval=_read_positive_float(_POLL_INTERVAL_ENV, 30.0),
        retry_attempts=_read_positive_int(_RETRY_ATTEMPTS_ENV, 5),
        retry_delay=_read_positive_float(_RETRY_DELAY_ENV, 1.0),
        alert_cooldown=_read_positive_float(_COOLDOWN_ENV, 300.0),
        http_timeout=_read_positive_float(_HTTP_TIMEOUT_ENV, 10.0),
        audio_enabled=_read_bool(_AUDIO_ENV, False),
        log_level=_read_log_level("INFO"),
    )
