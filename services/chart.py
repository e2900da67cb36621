"""Projection of readings into chart-ready points."""

from __future__ import annotations

import math
from datetime import datetime, timezone, tzinfo
from typing import Sequence, TypeVar

from models.records import ChartPoint, WeatherReading

DEFAULT_MAX_POINTS = 200

T = TypeVar("T")


def format_label(moment: datetime, tz: tzinfo = timezone.utc) -> str:
    """Render e.g. ``Feb 8, 12:00 PM``."""

    local = moment.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local:%b} {local.day}, {hour}:{local:%M} {meridiem}"


def format_for_chart(
    readings: Sequence[WeatherReading], tz: tzinfo = timezone.utc
) -> list[ChartPoint]:
    return [
        ChartPoint(
            display_label=format_label(reading.timestamp, tz),
            sort_key=reading.sort_key,
            temperature=reading.temperature,
            humidity=reading.humidity,
        )
        for reading in readings
    ]


def downsample(points: Sequence[T], max_points: int = DEFAULT_MAX_POINTS) -> list[T]:
    """Thin a series to at most ``max_points`` by keeping every n-th item."""

    if max_points < 1:
        raise ValueError("max_points must be positive.")
    if len(points) <= max_points:
        return list(points)

    step = math.ceil(len(points) / max_points)
    return list(points[::step])
