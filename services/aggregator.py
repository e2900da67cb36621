"""Aggregation logic for weather readings."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence

from models.records import DailySummary, WeatherReading, WeatherStats

_ONE_DECIMAL = Decimal("0.1")


def _round_decimal(value: Decimal) -> float:
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def round_one_decimal(value: float) -> float:
    """Round half away from zero to one decimal place (18.15 -> 18.2)."""

    return _round_decimal(Decimal(repr(value)))


def _mean(values: Sequence[float]) -> float:
    # Exact decimal mean: [18.1, 18.1, 18.2, 18.2] averages to 18.15, not 18.149999.
    total = sum((Decimal(repr(value)) for value in values), Decimal(0))
    return _round_decimal(total / len(values))


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def compute_stats(self, readings: Sequence[WeatherReading]) -> Optional[WeatherStats]:
        """Summarise an already sorted sequence; ``None`` when it is empty."""

        if not readings:
            return None

        temperatures = [reading.temperature for reading in readings]
        humidities = [reading.humidity for reading in readings]
        latest = readings[-1]

        return WeatherStats(
            current_temperature=latest.temperature,
            current_humidity=latest.humidity,
            avg_temperature=_mean(temperatures),
            avg_humidity=_mean(humidities),
            min_temperature=min(temperatures),
            max_temperature=max(temperatures),
            min_humidity=min(humidities),
            max_humidity=max(humidities),
            total_readings=len(readings),
            last_updated=latest.timestamp,
        )

    def summarize_daily(
        self, readings: Sequence[WeatherReading], tz: tzinfo = timezone.utc
    ) -> List[DailySummary]:
        """Group readings by calendar day in ``tz``."""

        buckets: Dict[date, list[WeatherReading]] = defaultdict(list)
        for reading in readings:
            buckets[reading.timestamp.astimezone(tz).date()].append(reading)

        summaries: List[DailySummary] = []
        for day in sorted(buckets):
            items = buckets[day]
            temperatures = [reading.temperature for reading in items]
            humidities = [reading.humidity for reading in items]
            summaries.append(
                DailySummary(
                    day=day,
                    avg_temperature=_mean(temperatures),
                    avg_humidity=_mean(humidities),
                    min_temperature=min(temperatures),
                    max_temperature=max(temperatures),
                    min_humidity=min(humidities),
                    max_humidity=max(humidities),
                    reading_count=len(items),
                )
            )
        return summaries


def compute_stats(readings: Sequence[WeatherReading]) -> Optional[WeatherStats]:
    return Aggregator().compute_stats(readings)


def summarize_daily(
    readings: Sequence[WeatherReading], tz: tzinfo = timezone.utc
) -> List[DailySummary]:
    return Aggregator().summarize_daily(readings, tz)
