from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from models.records import DateRange
from services.weather import WeatherDataService, build_default_service
from settings import get_settings


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

RANGE_LABELS = {
    DateRange.last_24_hours: "24h",
    DateRange.last_7_days: "7d",
    DateRange.last_30_days: "30d",
    DateRange.all_time: "All",
}


def get_service() -> WeatherDataService:
    return build_default_service()


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    date_range: DateRange = Query(DateRange.all_time, alias="range"),
    service: WeatherDataService = Depends(get_service),
) -> HTMLResponse:
    snapshot = service.get_snapshot()
    chart = service.get_chart(date_range, max_points=get_settings().chart_max_points)
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "stats": snapshot.stats,
            "generated_at": snapshot.generated_at,
            "source_file_count": snapshot.source_file_count,
            "chart": chart,
            "ranges": RANGE_LABELS,
            "selected_range": date_range,
        },
    )
