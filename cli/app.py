from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

import typer

from cli.client import BackendClient
from cli.config import CLIConfig, load_config
from cli.render import render_history
from logging_config import configure_logging
from services.classifier import ThresholdConfig
from services.history import HistoryService, build_default_history_service

logger = logging.getLogger(__name__)


@dataclass
class CLIState:
    config: CLIConfig
    client: BackendClient


app = typer.Typer(
    help="Align and band the fill-level and battery-level history of waste-bin sensors.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def _parse_pair(value: Optional[str], option: str) -> Optional[tuple[float, float]]:
    if value is None:
        return None
    parts = [part.strip() for part in value.split(",")]
    try:
        low, high = (float(part) for part in parts)
    except ValueError as exc:
        raise typer.BadParameter(f"{option} expects two numbers like '30,70'.") from exc
    return (low, high)


def _thresholds(
    service: HistoryService,
    fill: Optional[str],
    battery: Optional[str],
) -> ThresholdConfig:
    base = service.thresholds
    fill_pair = _parse_pair(fill, "--fill-thresholds")
    battery_pair = _parse_pair(battery, "--battery-thresholds")
    return ThresholdConfig.from_pairs(
        fill_pair if fill_pair is not None else base.fill,
        battery_pair if battery_pair is not None else base.battery,
    )


def _load_stream(path: Path) -> List[Any]:
    try:
        payload = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Could not read JSON history from {path}: {exc}") from exc
    if not isinstance(payload, list):
        raise typer.BadParameter(f"{path} must contain a JSON array of history samples.")
    return payload


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard backend URL (defaults to BACKEND_URL env or http://localhost:3000).",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        help="Bearer token for the backend (defaults to BACKEND_TOKEN env).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds before a backend request is abandoned.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
) -> None:
    """Entry point for the CLI."""
    if verbose:
        configure_logging("DEBUG", force=True)
    else:
        configure_logging()
    config = load_config(base_url=base_url, token=token, timeout=timeout)
    client = BackendClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("reconcile")
def reconcile_command(
    files: List[Path] = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON files, each holding the history array of one sensor.",
    ),
    granularity: Optional[int] = typer.Option(
        None, "--granularity", "-n", min=1, help="Bucket size in seconds."
    ),
    fill_thresholds: Optional[str] = typer.Option(
        None, "--fill-thresholds", help="Fill level warning,critical thresholds, e.g. '30,70'."
    ),
    battery_thresholds: Optional[str] = typer.Option(
        None, "--battery-thresholds", help="Battery good,critical thresholds, e.g. '50,20'."
    ),
) -> None:
    """Reconcile sensor history files without contacting the backend."""
    service = build_default_history_service()
    thresholds = _thresholds(service, fill_thresholds, battery_thresholds)
    streams = [_load_stream(path) for path in files]
    history = service.build(*streams, thresholds=thresholds, granularity=granularity)
    render_history(history)


@app.command("history")
def history_command(
    ctx: typer.Context,
    identifier: str = typer.Argument(..., help="Trashbin identifier."),
    project_id: Optional[str] = typer.Option(
        None, "--project-id", "-p", help="Project whose preferences hold the thresholds."
    ),
    granularity: Optional[int] = typer.Option(
        None, "--granularity", "-n", min=1, help="Bucket size in seconds."
    ),
) -> None:
    """Fetch a trashbin's sensor history from the backend and reconcile it."""
    state = _get_state(ctx)
    service = build_default_history_service()

    base = None
    if project_id is not None:
        project = state.client.get_project(project_id)
        try:
            base = ThresholdConfig.from_preferences(project)
        except ValueError as exc:
            typer.secho(f"{exc} Using default thresholds.", fg=typer.colors.YELLOW, err=True)

    sensor_ids = state.client.get_sensor_ids(identifier)
    streams = []
    for sensor_id in sensor_ids:
        stream = state.client.get_sensor_history(sensor_id)
        logger.info(
            "Fetched sensor history",
            extra={"device": identifier, "sensor_id": sensor_id, "record_count": len(stream)},
        )
        streams.append(stream)
    history = service.build(
        *streams,
        thresholds=base or service.thresholds,
        granularity=granularity,
        device=identifier,
    )
    render_history(history, title=f"Trashbin {identifier}")
