"""
Root Typer application for the smart-alerts CLI.

Typical cron wiring::

    * * * * *  smart-alerts check
    # from a health check script
    smart-alerts event register service_down nginx "nginx is not responding"
    smart-alerts event recover service_down nginx
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from smart_alerts.cli.utils import CLIOptions, console, err_console, make_engine, print_dict, print_json

app = Typer(
    name="smart-alerts",
    help="smart-alerts - grace periods, dedup and recovery gating for health-check alerts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from smart_alerts import __version__

        typer.echo(f"smart-alerts {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    state_dir: Path | None = typer.Option(
        None,
        "--state-dir",
        "-s",
        help="State directory (overrides SMART_ALERT_STATE_DIR).",
    ),
    console_sink: bool = typer.Option(
        False,
        "--console",
        help="Print alerts to the terminal instead of the configured sink.",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="DEBUG, INFO, WARNING or ERROR.",
    ),
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """smart-alerts CLI - register events, run sweeps, send alerts."""
    ctx.obj = CLIOptions(
        state_dir=state_dir,
        console=console_sink,
        log_level=log_level.upper() if log_level else None,
    )


# ── Top-level commands ───────────────────────────────────────────────────


@app.command("init")
def init(ctx: typer.Context) -> None:
    """Create the state directory layout (idempotent)."""
    engine = make_engine(ctx)
    root = getattr(engine.pipeline.store, "root", engine.pipeline.store)
    if not engine.init():
        err_console.print(f"[bold red]Error[/bold red]: state directory unusable: {root}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] State initialized: {root}")


@app.command("check")
def check(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run one grace-period sweep over pending events."""
    engine = make_engine(ctx)
    report = engine.check_pending_alerts()
    if json_out:
        print_json(report.to_dict())
        return
    print_dict(
        {k: v for k, v in report.to_dict().items() if k != "promoted_keys"},
        title="Sweep",
    )
    for key in report.promoted_keys:
        console.print(f"  [yellow]→[/yellow] alerted {key}")


# ── Sub-command registration ─────────────────────────────────────────────

from smart_alerts.cli.config import app as config_app  # noqa: E402
from smart_alerts.cli.events import app as events_app  # noqa: E402
from smart_alerts.cli.send import app as send_app  # noqa: E402

app.add_typer(events_app, name="event", help="Register, recover and inspect event records.")
app.add_typer(send_app, name="send", help="Direct alert delivery.")
app.add_typer(config_app, name="config", help="Configuration inspection.")
