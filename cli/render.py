from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_stats(payload: Optional[Dict[str, Any]]) -> None:
    echo_heading("Weather Summary")
    if not payload:
        typer.echo("No data available yet.")
        return

    echo_key_values(
        [
            ("current_temperature", payload.get("current_temperature")),
            ("current_humidity", payload.get("current_humidity")),
            ("avg_temperature", payload.get("avg_temperature")),
            ("avg_humidity", payload.get("avg_humidity")),
            ("min_temperature", payload.get("min_temperature")),
            ("max_temperature", payload.get("max_temperature")),
            ("min_humidity", payload.get("min_humidity")),
            ("max_humidity", payload.get("max_humidity")),
            ("total_readings", payload.get("total_readings")),
            ("last_updated", payload.get("last_updated")),
        ]
    )


def render_chart(payload: Dict[str, Any]) -> None:
    points = payload.get("points") or []
    echo_heading(f"Readings ({payload.get('date_range')})")
    if not points:
        typer.echo("No readings in this range.")
        return

    for point in points:
        typer.echo(
            f"  {point.get('display_label')}: {point.get('temperature')}C {point.get('humidity')}%"
        )
    total = payload.get("total_points", len(points))
    if total != len(points):
        typer.echo(f"(showing {len(points)} of {total} readings)")
