from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_ALERT_VALUES = {"DETECTED", "HIGH", "ALERT", "CRITICAL", "EVACUATE"}
_WARNING_VALUES = {"WARNING"}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _color_for(value: Any) -> str | None:
    if value in _ALERT_VALUES:
        return typer.colors.RED
    if value in _WARNING_VALUES:
        return typer.colors.YELLOW
    return None


def echo_status(key: str, value: Any) -> None:
    typer.echo(f"{key}: ", nl=False)
    typer.secho(str(value), fg=_color_for(value))


def render_overview(payload: Dict[str, Any]) -> None:
    echo_heading("Live Overview")
    record = payload.get("record")
    if not record:
        typer.echo("No data received from the sensor feed yet.")
        return

    echo_key_values(
        [
            ("timestamp", record.get("timestamp")),
            ("link", "Link Active" if payload.get("link_active") else "Link Down"),
            ("wifi", record.get("connectivity")),
            ("tof_reading", record.get("distance")),
        ]
    )
    echo_status("trash_status", payload.get("trash_status"))
    echo_status("water_level", payload.get("level"))
    echo_status("operational_status", payload.get("status"))
    echo_status("flood_risk", payload.get("flood_risk"))
    echo_status("action", payload.get("action"))

    recent = payload.get("recent") or []
    if recent:
        typer.echo()
        echo_heading("Recent Readings")
        for item in recent:
            typer.echo(
                f"  - {item.get('timestamp')}: {item.get('detection')}, {item.get('level')}"
            )


def render_series(payload: Dict[str, Any]) -> None:
    if payload.get("is_empty"):
        echo_heading("Charts")
        typer.echo("No data received from the sensor feed yet.")
        return

    if payload.get("mode") == "day":
        echo_heading(f"Detections on {payload.get('selected_day')}")
    else:
        echo_heading("Detections (last 10 days)")
    bars = payload.get("detections") or []
    if bars:
        for bar in bars:
            marker = "#" if bar.get("detected") else "."
            typer.echo(f"  {bar.get('label'):>8} {marker} {bar.get('actual_count')}")
    else:
        typer.echo("  No readings for this day.")
    typer.echo(f"total_detections: {payload.get('detection_total')}")

    typer.echo()
    echo_heading("Water Level Trend")
    trend = payload.get("level_trend") or []
    typer.echo("  " + "".join(str(point.get("value")) for point in trend))

    typer.echo()
    echo_heading("Depth History")
    for point in (payload.get("depth_history") or [])[-10:]:
        typer.echo(f"  {point.get('timestamp')}: {point.get('depth')} ", nl=False)
        typer.secho(str(point.get("risk")), fg=_color_for(point.get("risk")))

    days = payload.get("available_days") or []
    if days:
        typer.echo()
        typer.echo(f"days: {', '.join(days)}")


def render_records(records: List[Dict[str, Any]]) -> None:
    echo_heading("Historical Log")
    if not records:
        typer.echo("No records match the current filters.")
        return
    for record in records:
        typer.echo(
            "  "
            f"{record.get('timestamp'):<20} "
            f"{record.get('connectivity'):<12} "
            f"{record.get('distance'):>8} "
            f"{record.get('detection'):<13} "
            f"{record.get('level'):<7} "
            f"{record.get('status')}"
        )


def render_refresh(payload: Dict[str, Any]) -> None:
    echo_heading("Refresh")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("attempts", payload.get("attempts")),
            ("record_count", payload.get("record_count")),
        ]
    )
