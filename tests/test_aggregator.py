"""Unit tests for the aggregation logic."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from models.records import WeatherReading
from services.aggregator import Aggregator, compute_stats, round_one_decimal, summarize_daily

BASE = datetime(2026, 2, 8, 12, 0, 21, tzinfo=timezone.utc)


def _readings(temperatures: list[float], humidities: list[float]) -> list[WeatherReading]:
    """Helper to build deterministic, five-minute-spaced readings."""

    return [
        WeatherReading(timestamp=BASE + timedelta(minutes=5 * i), temperature=t, humidity=h)
        for i, (t, h) in enumerate(zip(temperatures, humidities))
    ]


def test_compute_stats_empty_returns_none() -> None:
    assert compute_stats([]) is None
    assert Aggregator().compute_stats([]) is None


def test_compute_stats_values() -> None:
    readings = _readings([18.1, 18.1, 18.2, 18.2], [59, 59, 59, 58])

    stats = compute_stats(readings)

    assert stats is not None
    assert stats.avg_temperature == 18.2
    assert stats.avg_humidity == 58.8
    assert stats.min_temperature == 18.1
    assert stats.max_temperature == 18.2
    assert stats.min_humidity == 58
    assert stats.max_humidity == 59
    assert stats.current_temperature == 18.2
    assert stats.current_humidity == 58
    assert stats.total_readings == 4
    assert stats.last_updated == readings[-1].timestamp


def test_current_values_come_from_last_element_without_resorting() -> None:
    readings = list(reversed(_readings([10.0, 30.0], [40.0, 60.0])))

    stats = compute_stats(readings)

    assert stats is not None
    assert stats.current_temperature == 10.0
    assert stats.last_updated == BASE


def test_extrema_are_not_rounded() -> None:
    stats = compute_stats(_readings([18.14, 18.26], [40.123, 41.987]))

    assert stats is not None
    assert stats.min_temperature == 18.14
    assert stats.max_humidity == 41.987
    assert stats.avg_temperature == 18.2


@pytest.mark.parametrize(
    ("value", "expected"),
    [(18.15, 18.2), (58.75, 58.8), (20.04, 20.0), (0.05, 0.1), (19.0, 19.0)],
)
def test_round_one_decimal(value: float, expected: float) -> None:
    assert round_one_decimal(value) == expected


def test_summarize_daily_groups_by_calendar_day() -> None:
    readings = [
        WeatherReading(timestamp=datetime(2026, 2, 8, 23, 30, tzinfo=timezone.utc), temperature=18.0, humidity=50.0),
        WeatherReading(timestamp=datetime(2026, 2, 8, 23, 45, tzinfo=timezone.utc), temperature=20.0, humidity=54.0),
        WeatherReading(timestamp=datetime(2026, 2, 9, 0, 15, tzinfo=timezone.utc), temperature=16.5, humidity=60.0),
    ]

    summaries = summarize_daily(readings)

    assert [summary.day for summary in summaries] == [date(2026, 2, 8), date(2026, 2, 9)]
    first = summaries[0]
    assert first.reading_count == 2
    assert first.avg_temperature == 19.0
    assert first.avg_humidity == 52.0
    assert (first.min_temperature, first.max_temperature) == (18.0, 20.0)
    assert summaries[1].reading_count == 1


def test_summarize_daily_respects_timezone() -> None:
    readings = [
        WeatherReading(timestamp=datetime(2026, 2, 8, 23, 30, tzinfo=timezone.utc), temperature=18.0, humidity=50.0),
        WeatherReading(timestamp=datetime(2026, 2, 9, 0, 15, tzinfo=timezone.utc), temperature=16.5, humidity=60.0),
    ]

    summaries = summarize_daily(readings, tz=timezone(timedelta(hours=2)))

    assert len(summaries) == 1
    assert summaries[0].day == date(2026, 2, 9)


def test_summarize_daily_empty() -> None:
    assert summarize_daily([]) == []
