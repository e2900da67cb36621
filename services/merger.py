"""Merging of per-file reading sequences."""

from __future__ import annotations

from typing import Iterable

from models.records import WeatherReading


def merge_readings(sequences: Iterable[Iterable[WeatherReading]]) -> list[WeatherReading]:
    """Combine sequences into one chronological list without duplicate timestamps.

    Readings sharing a timestamp collapse to the first one encountered in
    input order, regardless of their values.
    """
    seen: set[int] = set()
    unique: list[WeatherReading] = []

    for sequence in sequences:
        for reading in sequence:
            key = reading.sort_key
            if key in seen:
                continue
            seen.add(key)
            unique.append(reading)

    unique.sort(key=lambda reading: reading.sort_key)
    return unique
