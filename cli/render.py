from __future__ import annotations

from typing import Any, Iterable, Sequence

import typer

from models.schemas import DashboardSnapshot, IngestError, MetricsReport

# Status color tags mapped onto terminal colors.
_COLORS = {
    "blue": typer.colors.BLUE,
    "cyan": typer.colors.CYAN,
    "green": typer.colors.GREEN,
    "yellow": typer.colors.YELLOW,
    "red": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_metrics(report: MetricsReport) -> None:
    echo_heading("Derived Metrics")
    echo_key_values(
        [
            ("vpd", f"{report.vpd:.2f} kPa"),
            ("absolute_humidity", f"{report.absolute_humidity:.2f} g/m3"),
            ("growth_score", f"{report.growth_score}%"),
        ]
    )
    typer.echo("status: ", nl=False)
    typer.secho(report.status_label, fg=_COLORS.get(report.status_color))


def render_snapshot(snapshot: DashboardSnapshot, errors: Sequence[IngestError] = ()) -> None:
    if snapshot.critical_alert:
        typer.secho(
            "Critical alert: air is very dry, plants are losing water. Humidify now.",
            fg=typer.colors.RED,
            bold=True,
        )
        typer.echo()

    echo_heading("Current Sample")
    current = snapshot.current
    if current is not None:
        echo_key_values(
            [
                ("temperature", f"{current.temperature} C"),
                ("humidity", f"{current.humidity} %"),
                ("recorded_at", current.timestamp.isoformat()),
            ]
        )
    else:
        typer.echo("No samples received yet.")

    typer.echo()
    render_metrics(snapshot.metrics)

    typer.echo()
    echo_heading("History")
    if snapshot.history:
        first, last = snapshot.history[0], snapshot.history[-1]
        echo_key_values(
            [
                ("samples", len(snapshot.history)),
                ("from", first.timestamp.isoformat()),
                ("to", last.timestamp.isoformat()),
            ]
        )
    else:
        typer.echo("No history available.")

    typer.echo()
    echo_heading("Controls")
    controls = snapshot.controls
    echo_key_values(
        [
            ("device_name", controls.device_name),
            ("auto_mode", controls.auto_mode),
            ("threshold_humidity", f"{controls.threshold_humidity} %"),
            ("status", "on" if controls.status else "off"),
        ]
    )

    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(f"  - row {error.row_number}: {error.reason}")
    else:
        typer.echo("No errors recorded.")
