from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer

from app.schemas import SerializedStats
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_chart, render_stats
from models.records import DateRange
from services.aggregator import compute_stats
from services.merger import merge_readings
from services.parser import parse_csv
from services.range_filter import filter_by_range
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for the weather station dashboard.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, http_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to a CSV export."),
) -> None:
    """Upload a device CSV export into the bucket."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {file} to {state.config.base_url} ...")
    object_key = state.client.upload_file(file)
    typer.secho(f"Upload accepted. object_key={object_key}", fg=typer.colors.GREEN)


@app.command("stats")
def stats_command(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Rebuild the snapshot before reading it."),
) -> None:
    """Show summary statistics from the service."""
    state = _get_state(ctx)
    if refresh:
        state.client.refresh()
    render_stats(state.client.get_stats())


@app.command("chart")
def chart_command(
    ctx: typer.Context,
    date_range: DateRange = typer.Option(DateRange.all_time, "--range", "-r", help="Lookback window."),
    max_points: Optional[int] = typer.Option(None, "--max-points", min=1, help="Downsample to this many points."),
) -> None:
    """List chart points for a date range."""
    state = _get_state(ctx)
    render_chart(state.client.get_chart(date_range.value, max_points=max_points))


@app.command("summarize")
def summarize_command(
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Local CSV exports."),
    date_range: DateRange = typer.Option(DateRange.all_time, "--range", "-r", help="Lookback window."),
) -> None:
    """Summarize local CSV exports without contacting the service."""
    device_timezone = get_settings().device_timezone
    parsed = [parse_csv(path.read_text(encoding="utf-8-sig"), device_timezone) for path in files]
    readings = filter_by_range(merge_readings(parsed), date_range, datetime.now(timezone.utc))
    stats = compute_stats(readings)
    render_stats(SerializedStats.from_stats(stats).model_dump(mode="json") if stats else None)
