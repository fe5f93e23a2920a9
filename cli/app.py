from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

import typer

from cli.render import render_metrics, render_snapshot
from datastore.controls import build_default_control_store
from datastore.measurements import MeasurementStore
from logging_config import configure_logging
from models.schemas import MetricsReport
from services.dashboard import DashboardSession
from services.engine import InvalidSampleError, derive_metrics
from services.ingest import IngestReport, SampleCsvParser, load_json_samples
from settings import Settings, get_settings


@dataclass
class CLIState:
    settings: Settings


app = typer.Typer(
    help="Greenhouse climate metrics from temperature/humidity telemetry.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    settings = get_settings()
    configure_logging(log_level.upper() if log_level else None)
    ctx.obj = CLIState(settings=settings)


@app.command("derive")
def derive_command(
    temperature: float = typer.Option(..., "--temperature", "-t", help="Air temperature in C."),
    humidity: float = typer.Option(..., "--humidity", "-r", help="Relative humidity in %."),
    as_json: bool = typer.Option(False, "--json", help="Print the metrics as JSON."),
) -> None:
    """Derive VPD, absolute humidity, growth score and status for one reading."""
    try:
        metrics = derive_metrics(temperature, humidity)
    except InvalidSampleError as exc:
        _fail(str(exc))
    report = MetricsReport.from_metrics(metrics)
    if as_json:
        typer.echo(report.model_dump_json(indent=2))
        return
    render_metrics(report)


def _read_samples(path: Path) -> IngestReport:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return load_json_samples(text, source=path.name)
    return SampleCsvParser().parse(text.splitlines(keepends=True), source=path.name)


@app.command("analyze")
def analyze_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="CSV (temperature,humidity,timestamp) or JSON array of measurement rows.",
    ),
    history: Optional[int] = typer.Option(
        None,
        "--history",
        min=1,
        help="Number of recent samples to keep (defaults to GREENHOUSE_HISTORY_LIMIT or 50).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the dashboard snapshot as JSON."),
) -> None:
    """Replay a file of samples and report the resulting dashboard snapshot."""
    state = _get_state(ctx)
    try:
        report = _read_samples(file)
    except ValueError as exc:
        _fail(str(exc))

    if not report.samples:
        _fail(f"No valid samples found in {file.name}.")

    store = MeasurementStore()
    session = DashboardSession(
        measurements=store,
        controls=build_default_control_store(),
        device_name=state.settings.device_name,
        history_limit=history or state.settings.history_limit,
    )
    with session:
        for sample in report.samples:
            store.insert(sample)
        try:
            snapshot = session.snapshot()
        except InvalidSampleError as exc:
            _fail(str(exc))

    if as_json:
        payload = snapshot.model_dump(mode="json")
        payload["errors"] = [error.model_dump() for error in report.errors]
        typer.echo(json.dumps(payload, indent=2))
        return
    render_snapshot(snapshot, report.errors)
