from __future__ import annotations

from typing import Any, Iterable, Optional

import typer

from models.records import Band, BandRanges
from services.history import DeviceHistory, LatestReading

_BAND_COLORS = {
    Band.GOOD: typer.colors.GREEN,
    Band.WARNING: typer.colors.YELLOW,
    Band.CRITICAL: typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _cell(value: float, band: Optional[Band], width: int) -> str:
    text = f"{value:g}".rjust(width)
    if band is None:
        return text
    return typer.style(text, fg=_BAND_COLORS[band])


def _latest(reading: Optional[LatestReading]) -> str:
    if reading is None:
        return "no readings"
    return f"{reading.value:g} ({reading.band.value}) at {reading.bucket.isoformat()}"


def _ranges(ranges: BandRanges) -> str:
    return (
        f"green {ranges.green[0]:g}-{ranges.green[1]:g}, "
        f"yellow {ranges.yellow[0]:g}-{ranges.yellow[1]:g}, "
        f"red {ranges.red[0]:g}-{ranges.red[1]:g}"
    )


def render_history(history: DeviceHistory, title: str = "History") -> None:
    echo_heading(title)
    if history.records:
        typer.echo(f"{'Time':<25} {'Fill Level':>12} {'Battery Level':>14}")
        for item in history.records:
            record = item.record
            typer.echo(
                f"{record.bucket.isoformat():<25} "
                f"{_cell(record.fill_level, item.fill_band, 12)} "
                f"{_cell(record.battery_level, item.battery_band, 14)}"
            )
    else:
        typer.echo("No history available.")

    typer.echo()
    echo_heading("Status")
    overall = history.status.overall
    echo_key_values(
        [
            ("fill_level", _latest(history.status.fill)),
            ("battery_level", _latest(history.status.battery)),
            ("overall", overall.value if overall else "unknown"),
            ("fill_bands", _ranges(history.fill_ranges)),
            ("battery_bands", _ranges(history.battery_ranges)),
            ("granularity", f"{history.granularity}s"),
        ]
    )

    typer.echo()
    echo_heading("Issues")
    if history.issues:
        for issue in history.issues:
            if issue.position < 0:
                typer.echo(f"  - stream {issue.stream}: {issue.reason}")
            else:
                typer.echo(f"  - stream {issue.stream}, sample {issue.position}: {issue.reason}")
    else:
        typer.echo("No issues recorded.")
