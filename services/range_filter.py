"""Relative time-window selection over reading sequences."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence, Union

from models.records import DateRange, WeatherReading


def filter_by_range(
    readings: Sequence[WeatherReading],
    date_range: Union[DateRange, str],
    now: datetime,
) -> list[WeatherReading]:
    """Keep readings no older than the range window, measured back from ``now``.

    Raises ``ValueError`` for tokens other than ``24h``, ``7d``, ``30d`` and ``all``.
    """
    selected = DateRange(date_range)
    window = selected.window
    if window is None:
        return list(readings)

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = now - window
    return [reading for reading in readings if reading.timestamp >= cutoff]
