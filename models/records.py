"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    """Integer epoch milliseconds for an aware datetime."""

    return (moment - EPOCH) // timedelta(milliseconds=1)


@dataclass(frozen=True, slots=True)
class WeatherReading:
    """A single temperature/humidity observation parsed from a device export."""

    timestamp: datetime
    temperature: float
    humidity: float

    @property
    def sort_key(self) -> int:
        return to_epoch_ms(self.timestamp)


class DateRange(str, Enum):
    """Relative lookback windows accepted by the range filter."""

    last_24_hours = "24h"
    last_7_days = "7d"
    last_30_days = "30d"
    all_time = "all"

    @property
    def window(self) -> timedelta | None:
        return _WINDOWS.get(self)


_WINDOWS = {
    DateRange.last_24_hours: timedelta(hours=24),
    DateRange.last_7_days: timedelta(days=7),
    DateRange.last_30_days: timedelta(days=30),
}


@dataclass(frozen=True, slots=True)
class WeatherStats:
    """Summary statistics over a merged reading sequence."""

    current_temperature: float
    current_humidity: float
    avg_temperature: float
    avg_humidity: float
    min_temperature: float
    max_temperature: float
    min_humidity: float
    max_humidity: float
    total_readings: int
    last_updated: datetime


@dataclass(frozen=True, slots=True)
class ChartPoint:
    """Display-ready projection of a reading."""

    display_label: str
    sort_key: int
    temperature: float
    humidity: float


@dataclass(frozen=True, slots=True)
class DailySummary:
    """Per-day aggregates for the daily overview."""

    day: date
    avg_temperature: float
    avg_humidity: float
    min_temperature: float
    max_temperature: float
    min_humidity: float
    max_humidity: float
    reading_count: int
