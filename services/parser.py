"""Tolerant parsing of weather device CSV exports.

Each export line looks like::

    2026-02-08 12:00:21,Humidity: 59.00%  Temp: 18.10C

Lines that cannot be parsed are dropped; parsing never raises.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

from models.records import WeatherReading

logger = logging.getLogger(__name__)

HEADER_TOKENS = frozenset({"timestamp"})

_HUMIDITY_PATTERN = re.compile(r"Humidity\s*:\s*([\d.]+)%", re.IGNORECASE)
_TEMPERATURE_PATTERN = re.compile(r"Temp\s*:\s*([\d.]+)C", re.IGNORECASE)

# Layouts tried after ISO-8601 has been ruled out.
_FALLBACK_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y",
    "%Y/%m/%d %H:%M:%S",
    "%b %d %Y %H:%M:%S",
    "%b %d, %Y %H:%M:%S",
    "%d %b %Y %H:%M:%S",
    "%a %b %d %Y %H:%M:%S",
    "%a %b %d %H:%M:%S %Y",
)


def parse_timestamp(value: str, tz: tzinfo = timezone.utc) -> datetime:
    """Parse a device timestamp into an aware UTC datetime truncated to the second.

    Naive values are interpreted in ``tz``. Raises ``ValueError`` when no
    supported layout matches.
    """
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        for layout in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(candidate, layout)
            except ValueError:
                continue
            break

    if parsed is None:
        raise ValueError(f"Unrecognised timestamp {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)

    return parsed.astimezone(timezone.utc).replace(microsecond=0)


def _extract(pattern: re.Pattern[str], payload: str) -> Optional[float]:
    match = pattern.search(payload)
    if match is None:
        return None
    try:
        number = float(match.group(1))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_line(line: str, tz: tzinfo = timezone.utc) -> WeatherReading:
    """Parse one export line, raising ``ValueError`` with the reject reason."""

    timestamp_raw, delimiter, payload = line.partition(",")
    if not delimiter:
        raise ValueError("missing delimiter")

    try:
        timestamp = parse_timestamp(timestamp_raw, tz)
    except (ValueError, OverflowError) as exc:
        raise ValueError("invalid timestamp") from exc

    humidity = _extract(_HUMIDITY_PATTERN, payload)
    if humidity is None:
        raise ValueError("missing humidity")

    temperature = _extract(_TEMPERATURE_PATTERN, payload)
    if temperature is None:
        raise ValueError("missing temperature")

    return WeatherReading(timestamp=timestamp, temperature=temperature, humidity=humidity)


def parse_csv(raw: str, tz: tzinfo = timezone.utc) -> list[WeatherReading]:
    """Parse a raw export into readings, in order of appearance."""

    readings: list[WeatherReading] = []
    seen_content = False

    for line_number, raw_line in enumerate(raw.replace("\r\n", "\n").split("\n"), start=1):
        line = raw_line.strip()
        if not line:
            continue

        if not seen_content:
            seen_content = True
            first_field = line.split(",", 1)[0].strip().lower()
            if first_field in HEADER_TOKENS:
                continue

        try:
            readings.append(parse_line(line, tz))
        except ValueError as exc:
            logger.debug(
                "Skipping line: %s",
                exc,
                extra={"line_number": line_number, "reason": str(exc)},
            )

    return readings
