"""Fetch-and-compute orchestration for weather device exports."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import List, Optional

from app.schemas import (
    ChartPointModel,
    ChartResponse,
    DailySummaryModel,
    DailySummaryResponse,
    SerializedReading,
    SerializedStats,
    WeatherSnapshot,
)
from datastore.snapshot_cache import SnapshotCache, build_default_cache
from models.records import DateRange
from services.aggregator import Aggregator
from services.chart import DEFAULT_MAX_POINTS, downsample, format_for_chart
from services.merger import merge_readings
from services.parser import parse_csv
from services.range_filter import filter_by_range
from settings import get_settings
from storage.mock_s3 import MockS3Bucket, build_default_bucket

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "weather-data"


class WeatherDataService:
    """Coordinates bucket downloads, the parsing pipeline and the snapshot cache."""

    def __init__(
        self,
        bucket: MockS3Bucket,
        cache: SnapshotCache,
        aggregator: Aggregator,
        prefix: str = "",
        device_timezone: tzinfo = timezone.utc,
        workers: int = 4,
    ) -> None:
        self.bucket = bucket
        self.cache = cache
        self.aggregator = aggregator
        self.prefix = prefix
        self.device_timezone = device_timezone
        self.executor = ThreadPoolExecutor(max_workers=workers)
        self._rebuild_lock = Lock()

    def list_csv_keys(self) -> List[str]:
        """CSV export keys under the prefix, most recently modified first."""

        keys = [key for key in self.bucket.list_objects(self.prefix) if key.lower().endswith(".csv")]
        modified = {}
        for key in keys:
            try:
                modified[key] = self.bucket.head_object(key).last_modified
            except KeyError:
                continue
        return sorted(modified, key=lambda key: (modified[key], key), reverse=True)

    def fetch_csv_blobs(self) -> List[str]:
        """Download every export as text; failures degrade to fewer blobs."""

        try:
            keys = self.list_csv_keys()
        except OSError:
            logger.exception("Listing exports failed", extra={"reason": "list_failed"})
            return []

        if not keys:
            logger.info("No CSV exports found in bucket %s", self.bucket.name)
            return []

        logger.info("Downloading exports", extra={"file_count": len(keys)})
        contents = self.executor.map(self._download, keys)
        return [text for text in contents if text]

    def build_snapshot(self, now: Optional[datetime] = None) -> WeatherSnapshot:
        start_time = time.perf_counter()
        blobs = self.fetch_csv_blobs()
        parsed = [parse_csv(blob, self.device_timezone) for blob in blobs]
        readings = merge_readings(parsed)
        stats = self.aggregator.compute_stats(readings)

        snapshot = WeatherSnapshot(
            readings=[SerializedReading.from_reading(reading) for reading in readings],
            stats=SerializedStats.from_stats(stats) if stats is not None else None,
            generated_at=now or datetime.now(timezone.utc),
            source_file_count=len(blobs),
        )
        logger.info(
            "Built weather snapshot",
            extra={
                "file_count": len(blobs),
                "reading_count": len(readings),
                "processing_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return snapshot

    def get_snapshot(self, force_refresh: bool = False, now: Optional[datetime] = None) -> WeatherSnapshot:
        """Serve the cached snapshot, rebuilding it once the TTL has elapsed."""

        if not force_refresh:
            cached = self.cache.get(SNAPSHOT_KEY, now=now)
            if cached is not None:
                return cached

        # One rebuild at a time; waiters reuse the snapshot it stored.
        with self._rebuild_lock:
            if not force_refresh:
                cached = self.cache.get(SNAPSHOT_KEY, now=now)
                if cached is not None:
                    return cached
            snapshot = self.build_snapshot(now=now)
            self.cache.put(SNAPSHOT_KEY, snapshot, now=now)
        return snapshot

    def get_chart(
        self,
        date_range: DateRange | str = DateRange.all_time,
        now: Optional[datetime] = None,
        max_points: int = DEFAULT_MAX_POINTS,
    ) -> ChartResponse:
        selected = DateRange(date_range)
        current = now or datetime.now(timezone.utc)
        readings = self.get_snapshot().to_readings()
        in_range = filter_by_range(readings, selected, current)
        points = format_for_chart(in_range, self.device_timezone)
        logger.debug(
            "Projected chart series",
            extra={"date_range": selected.value, "reading_count": len(in_range)},
        )
        return ChartResponse(
            date_range=selected,
            total_points=len(points),
            points=[ChartPointModel.from_point(point) for point in downsample(points, max_points)],
        )

    def get_daily(self) -> DailySummaryResponse:
        readings = self.get_snapshot().to_readings()
        summaries = self.aggregator.summarize_daily(readings, self.device_timezone)
        return DailySummaryResponse(days=[DailySummaryModel.from_summary(item) for item in summaries])

    def ingest_upload(self, filename: str, contents: bytes) -> str:
        """Store a device export in the bucket and drop the cached snapshot."""

        if not contents:
            raise ValueError("Uploaded file is empty.")

        name = Path(filename or "export.csv").name
        if Path(name).suffix.lower() != ".csv":
            raise ValueError("Uploaded file must be a .csv export.")

        key = f"{self.prefix}{name}"
        self.bucket.put_object(key, contents)
        self.cache.invalidate(SNAPSHOT_KEY)
        logger.info("Stored device export", extra={"object_key": key})
        return key

    def refresh(self) -> WeatherSnapshot:
        return self.get_snapshot(force_refresh=True)

    def shutdown(self) -> None:
        """Clean up executor resources during application shutdown."""
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _download(self, key: str) -> str:
        try:
            return self.bucket.get_object(key).decode("utf-8-sig")
        except (KeyError, OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "Failed to download export: %s",
                exc,
                extra={"object_key": key, "reason": type(exc).__name__},
            )
            return ""


@lru_cache
def build_default_service(
    workers: Optional[int] = None,
) -> WeatherDataService:
    """Factory that wires the service with default mocks."""
    settings = get_settings()
    bucket = build_default_bucket()
    cache = build_default_cache()
    worker_count = workers or settings.download_workers
    return WeatherDataService(
        bucket=bucket,
        cache=cache,
        aggregator=Aggregator(),
        prefix=settings.csv_prefix,
        device_timezone=settings.device_timezone,
        workers=worker_count,
    )
