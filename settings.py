from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_HISTORY_LIMIT_ENV = "GREENHOUSE_HISTORY_LIMIT"
_DEVICE_NAME_ENV = "GREENHOUSE_DEVICE_NAME"
_THRESHOLD_ENV = "GREENHOUSE_HUMIDITY_THRESHOLD"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    history_limit: int
    device_name: str
    humidity_threshold: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_int_env(name: str) -> int | None:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        return int(candidate)
    except ValueError:
        return None


def _read_history_limit(default: int) -> int:
    parsed = _read_int_env(_HISTORY_LIMIT_ENV)
    if parsed is None:
        return default
    return parsed if parsed > 0 else default


def _read_threshold(default: int) -> int:
    parsed = _read_int_env(_THRESHOLD_ENV)
    if parsed is None:
        return default
    return min(max(parsed, 0), 100)


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
        history_limit=_read_history_limit(50),
        device_name=_read_str_env(_DEVICE_NAME_ENV, "led_fan"),
        humidity_threshold=_read_threshold(75),
        log_level=_read_log_level("INFO"),
    )
