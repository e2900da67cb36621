from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


_BUCKET_NAME_ENV = "WEATHER_BUCKET_NAME"
_BUCKET_ROOT_ENV = "WEATHER_BUCKET_ROOT_PATH"
_CSV_PREFIX_ENV = "WEATHER_CSV_PREFIX"
_CACHE_TTL_ENV = "SNAPSHOT_CACHE_TTL_SECONDS"
_CACHE_PATH_ENV = "SNAPSHOT_CACHE_PATH"
_WORKER_COUNT_ENV = "DOWNLOAD_WORKER_COUNT"
_DEVICE_TZ_ENV = "DEVICE_TIMEZONE"
_CHART_POINTS_ENV = "CHART_MAX_POINTS"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    bucket_name: str
    bucket_root_path: Optional[str]
    csv_prefix: str
    cache_ttl_seconds: int
    cache_persistence_path: Optional[str]
    download_workers: int
    device_timezone: tzinfo
    chart_max_points: int
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


def _read_timezone(default: tzinfo) -> tzinfo:
    value = os.getenv(_DEVICE_TZ_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    if candidate.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError):
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
        bucket_name=_read_str_env(_BUCKET_NAME_ENV, "weather-exports"),
        bucket_root_path=_read_optional_env(_BUCKET_ROOT_ENV, "./tmp/mock_s3"),
        csv_prefix=_read_str_env(_CSV_PREFIX_ENV, "exports/"),
        cache_ttl_seconds=_read_positive_int(_CACHE_TTL_ENV, 1800),
        cache_persistence_path=_read_optional_env(_CACHE_PATH_ENV, None),
        download_workers=_read_positive_int(_WORKER_COUNT_ENV, 4),
        device_timezone=_read_timezone(timezone.utc),
        chart_max_points=_read_positive_int(_CHART_POINTS_ENV, 200),
        log_level=_read_log_level("INFO"),
    )
