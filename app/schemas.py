"""Pydantic schemas for the HTTP API layer and the snapshot cache."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import (
    ChartPoint,
    DailySummary,
    DateRange,
    WeatherReading,
    WeatherStats,
)


class FileUploadResponse(BaseModel):
    """Immediate response payload after accepting a device export."""

    object_key: str = Field(..., description="Bucket key the export was stored under.")


class SerializedReading(BaseModel):
    """Reading with its instant rendered as ISO-8601 when dumped to JSON."""

    timestamp: datetime
    temperature: float
    humidity: float

    @classmethod
    def from_reading(cls, reading: WeatherReading) -> "SerializedReading":
        return cls(
            timestamp=reading.timestamp,
            temperature=reading.temperature,
            humidity=reading.humidity,
        )

    def to_reading(self) -> WeatherReading:
        return WeatherReading(
            timestamp=self.timestamp,
            temperature=self.temperature,
            humidity=self.humidity,
        )


class SerializedStats(BaseModel):
    """Summary statistics for the dashboard header."""

    current_temperature: float
    current_humidity: float
    avg_temperature: float
    avg_humidity: float
    min_temperature: float
    max_temperature: float
    min_humidity: float
    max_humidity: float
    total_readings: int = Field(..., ge=1)
    last_updated: datetime

    @classmethod
    def from_stats(cls, stats: WeatherStats) -> "SerializedStats":
        return cls(
            current_temperature=stats.current_temperature,
            current_humidity=stats.current_humidity,
            avg_temperature=stats.avg_temperature,
            avg_humidity=stats.avg_humidity,
            min_temperature=stats.min_temperature,
            max_temperature=stats.max_temperature,
            min_humidity=stats.min_humidity,
            max_humidity=stats.max_humidity,
            total_readings=stats.total_readings,
            last_updated=stats.last_updated,
        )


class WeatherSnapshot(BaseModel):
    """Everything computed in one fetch-and-compute pass."""

    readings: List[SerializedReading] = Field(default_factory=list)
    stats: Optional[SerializedStats] = None
    generated_at: datetime
    source_file_count: int = Field(0, ge=0)

    def to_readings(self) -> list[WeatherReading]:
        return [item.to_reading() for item in self.readings]


class ChartPointModel(BaseModel):
    display_label: str
    sort_key: int
    temperature: float
    humidity: float

    @classmethod
    def from_point(cls, point: ChartPoint) -> "ChartPointModel":
        return cls(
            display_label=point.display_label,
            sort_key=point.sort_key,
            temperature=point.temperature,
            humidity=point.humidity,
        )


class ChartResponse(BaseModel):
    """Chart series for a date range, possibly downsampled."""

    date_range: DateRange
    total_points: int = Field(..., ge=0, description="Points in range before downsampling.")
    points: List[ChartPointModel] = Field(default_factory=list)


class DailySummaryModel(BaseModel):
    day: date
    avg_temperature: float
    avg_humidity: float
    min_temperature: float
    max_temperature: float
    min_humidity: float
    max_humidity: float
    reading_count: int = Field(..., ge=1)

    @classmethod
    def from_summary(cls, summary: DailySummary) -> "DailySummaryModel":
        return cls(
            day=summary.day,
            avg_temperature=summary.avg_temperature,
            avg_humidity=summary.avg_humidity,
            min_temperature=summary.min_temperature,
            max_temperature=summary.max_temperature,
            min_humidity=summary.min_humidity,
            max_humidity=summary.max_humidity,
            reading_count=summary.reading_count,
        )


class DailySummaryResponse(BaseModel):
    days: List[DailySummaryModel] = Field(default_factory=list)
