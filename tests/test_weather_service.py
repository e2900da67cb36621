import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest

from datastore.snapshot_cache import SnapshotCache
from models.records import DateRange
from services.aggregator import Aggregator
from services.weather import SNAPSHOT_KEY, WeatherDataService
from storage.mock_s3 import MockS3Bucket

FIRST_EXPORT = (
    "Timestamp,Raw_Data\r\n"
    "2026-02-08 12:00:21,Humidity: 59.00%  Temp: 18.10C\r\n"
    "2026-02-08 12:05:21,Humidity: 59.00%  Temp: 18.10C\r\n"
    "2026-02-08 12:10:21,Humidity: 59.00%  Temp: 18.20C\r\n"
    "2026-02-08 12:15:21,Humidity: 58.00%  Temp: 18.20C\r\n"
)
SECOND_EXPORT = (
    "2026-02-08 12:15:21,Humidity: 10.00%  Temp: 99.90C\n"
    "2026-02-08 18:00:21,Humidity: 55.00%  Temp: 19.40C\n"
    "2026-02-08 18:05:21,Humidity: 54.00%  Temp: 19.50C\n"
)

NOW = datetime(2026, 2, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def bucket(tmp_path) -> MockS3Bucket:
    return MockS3Bucket(name="test", root_path=tmp_path / "s3")


@pytest.fixture()
def service(bucket: MockS3Bucket) -> Iterator[WeatherDataService]:
    cache = SnapshotCache(ttl=timedelta(minutes=30))
    instance = WeatherDataService(
        bucket=bucket, cache=cache, aggregator=Aggregator(), prefix="exports/", workers=2
    )
    yield instance
    instance.shutdown()


def test_list_csv_keys_filters_prefix_and_extension(
    bucket: MockS3Bucket, service: WeatherDataService
) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())
    bucket.put_object("exports/notes.txt", b"ignore me")
    bucket.put_object("elsewhere/b.csv", SECOND_EXPORT.encode())

    assert service.list_csv_keys() == ["exports/a.csv"]


def test_fetch_csv_blobs_skips_empty_and_undecodable_files(
    bucket: MockS3Bucket, service: WeatherDataService, caplog
) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())
    bucket.put_object("exports/empty.csv", b"")
    bucket.put_object("exports/broken.csv", b"\xff\xfe\xfa")

    with caplog.at_level(logging.WARNING, logger="services.weather"):
        blobs = service.fetch_csv_blobs()

    assert blobs == [FIRST_EXPORT]
    assert any(getattr(record, "object_key", None) == "exports/broken.csv" for record in caplog.records)


def test_fetch_csv_blobs_degrades_to_empty_on_listing_failure(
    service: WeatherDataService, monkeypatch
) -> None:
    def fail(prefix: str = ""):
        raise OSError("bucket unavailable")

    monkeypatch.setattr(service.bucket, "list_objects", fail)

    assert service.fetch_csv_blobs() == []


def test_build_snapshot_merges_and_dedups(bucket: MockS3Bucket, service: WeatherDataService) -> None:
    bucket.put_object("exports/2026-02-08-a.csv", FIRST_EXPORT.encode())
    bucket.put_object("exports/2026-02-08-b.csv", SECOND_EXPORT.encode())

    snapshot = service.build_snapshot(now=NOW)

    assert snapshot.source_file_count == 2
    assert len(snapshot.readings) == 6
    timestamps = [item.timestamp for item in snapshot.readings]
    assert timestamps == sorted(timestamps)
    assert snapshot.stats is not None
    assert snapshot.stats.total_readings == 6
    assert snapshot.stats.current_temperature == 19.5
    assert snapshot.generated_at == NOW


def test_build_snapshot_without_exports_has_no_stats(service: WeatherDataService) -> None:
    snapshot = service.build_snapshot(now=NOW)

    assert snapshot.readings == []
    assert snapshot.stats is None
    assert snapshot.source_file_count == 0


def test_get_snapshot_is_cached_until_ttl(bucket: MockS3Bucket, service: WeatherDataService) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())
    first = service.get_snapshot(now=NOW)

    bucket.put_object("exports/b.csv", SECOND_EXPORT.encode())
    cached = service.get_snapshot(now=NOW + timedelta(minutes=10))
    expired = service.get_snapshot(now=NOW + timedelta(minutes=31))

    assert cached == first
    assert len(cached.readings) == 4
    assert len(expired.readings) == 6


def test_identical_input_yields_identical_snapshot(bucket: MockS3Bucket, service: WeatherDataService) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())

    assert service.build_snapshot(now=NOW) == service.build_snapshot(now=NOW)


def test_ingest_upload_stores_export_and_invalidates_cache(
    bucket: MockS3Bucket, service: WeatherDataService
) -> None:
    service.get_snapshot(now=NOW)
    assert service.cache.get(SNAPSHOT_KEY, now=NOW) is not None

    key = service.ingest_upload("../../device/readings.csv", FIRST_EXPORT.encode())

    assert key == "exports/readings.csv"
    assert bucket.get_object(key) == FIRST_EXPORT.encode()
    assert service.cache.get(SNAPSHOT_KEY, now=NOW) is None
    assert len(service.get_snapshot(now=NOW).readings) == 4


def test_ingest_upload_rejects_empty_file(service: WeatherDataService) -> None:
    with pytest.raises(ValueError, match="Uploaded file is empty."):
        service.ingest_upload("empty.csv", b"")


@pytest.mark.parametrize("filename", ["readings.txt", "..", ".", ".csv", "exports/"])
def test_ingest_upload_rejects_non_csv_names(
    bucket: MockS3Bucket, service: WeatherDataService, filename: str
) -> None:
    with pytest.raises(ValueError, match="Uploaded file must be a .csv export."):
        service.ingest_upload(filename, FIRST_EXPORT.encode())

    assert bucket.list_objects() == []


def test_get_chart_filters_and_downsamples(bucket: MockS3Bucket, service: WeatherDataService) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())
    bucket.put_object("exports/b.csv", SECOND_EXPORT.encode())

    chart = service.get_chart(DateRange.last_24_hours, now=NOW + timedelta(hours=18, minutes=2))
    thinned = service.get_chart("all", now=NOW, max_points=3)

    assert chart.date_range is DateRange.last_24_hours
    assert chart.total_points == 1
    assert chart.points[0].temperature == 19.5
    assert thinned.total_points == 6
    assert len(thinned.points) == 3


def test_get_daily(bucket: MockS3Bucket, service: WeatherDataService) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())

    daily = service.get_daily()

    assert len(daily.days) == 1
    assert daily.days[0].reading_count == 4
    assert daily.days[0].avg_temperature == 18.2


def test_chart_reference_instant_does_not_pin_the_cache(
    bucket: MockS3Bucket, service: WeatherDataService
) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())
    service.get_chart("all", now=datetime.now(timezone.utc) + timedelta(days=365))

    bucket.put_object("exports/b.csv", SECOND_EXPORT.encode())
    expired = service.get_snapshot(now=datetime.now(timezone.utc) + timedelta(minutes=31))

    assert len(expired.readings) == 6


def test_naive_chart_instant_is_read_as_utc(bucket: MockS3Bucket, service: WeatherDataService) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())

    recent = service.get_chart("24h", now=datetime(2026, 2, 8, 13, 0))
    everything = service.get_chart("all")

    assert recent.total_points == 4
    assert everything.total_points == 4
    assert len(service.get_daily().days) == 1


def test_concurrent_requests_share_one_rebuild(
    bucket: MockS3Bucket, service: WeatherDataService, monkeypatch
) -> None:
    bucket.put_object("exports/a.csv", FIRST_EXPORT.encode())
    builds = []
    build_snapshot = service.build_snapshot

    def slow_build(now=None):
        builds.append(now)
        time.sleep(0.05)
        return build_snapshot(now=now)

    monkeypatch.setattr(service, "build_snapshot", slow_build)

    with ThreadPoolExecutor(max_workers=4) as pool:
        snapshots = list(pool.map(lambda _: service.get_snapshot(), range(4)))

    assert len(builds) == 1
    assert all(snapshot == snapshots[0] for snapshot in snapshots)
