"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import (
    ChartResponse,
    DailySummaryResponse,
    FileUploadResponse,
    SerializedStats,
    WeatherSnapshot,
)
from models.records import DateRange
from services.weather import WeatherDataService, build_default_service
from settings import get_settings

router = APIRouter()


def get_service() -> WeatherDataService:
    return build_default_service()


@router.post(
    "/files",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=FileUploadResponse,
    summary="Upload a device CSV export into the bucket.",
)
async def upload_file(
    file: UploadFile = File(..., description="CSV export from the weather device."),
    service: WeatherDataService = Depends(get_service),
) -> FileUploadResponse:
    contents = await file.read()
    await file.close()
    try:
        key = service.ingest_upload(file.filename or "export.csv", contents)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return FileUploadResponse(object_key=key)


@router.get(
    "/weather",
    response_model=WeatherSnapshot,
    summary="Merged readings and summary statistics.",
)
async def get_weather(
    service: WeatherDataService = Depends(get_service),
) -> WeatherSnapshot:
    return service.get_snapshot()


@router.get(
    "/weather/stats",
    response_model=SerializedStats,
    summary="Summary statistics over all readings.",
)
async def get_weather_stats(
    service: WeatherDataService = Depends(get_service),
) -> SerializedStats:
    snapshot = service.get_snapshot()
    if snapshot.stats is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No readings available yet.",
        )
    return snapshot.stats


@router.get(
    "/weather/chart",
    response_model=ChartResponse,
    summary="Chart series for a relative date range.",
)
async def get_weather_chart(
    date_range: DateRange = Query(DateRange.all_time, alias="range"),
    max_points: int | None = Query(None, ge=1, le=5000),
    service: WeatherDataService = Depends(get_service),
) -> ChartResponse:
    limit = max_points if max_points is not None else get_settings().chart_max_points
    return service.get_chart(date_range, max_points=limit)


@router.get(
    "/weather/daily",
    response_model=DailySummaryResponse,
    summary="Per-day aggregates.",
)
async def get_weather_daily(
    service: WeatherDataService = Depends(get_service),
) -> DailySummaryResponse:
    return service.get_daily()


@router.post(
    "/weather/refresh",
    response_model=WeatherSnapshot,
    summary="Rebuild the snapshot from the bucket, bypassing the cache.",
)
async def refresh_weather(
    service: WeatherDataService = Depends(get_service),
) -> WeatherSnapshot:
    return service.refresh()


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /ui for the dashboard."}
