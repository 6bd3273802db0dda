"""
CLI: ``smart-alerts send`` - direct delivery without event records.
"""

from __future__ import annotations

import typer

from smart_alerts.cli.utils import console, fail, make_engine, print_outcome
from smart_alerts.core.errors import InvalidArgumentError

app = typer.Typer(no_args_is_help=True)


@app.command("plain")
def send_plain(
    ctx: typer.Context,
    alert_type: str = typer.Argument(..., help="Rate-limit key"),
    body: str = typer.Argument(...),
    marker: str | None = typer.Option(None, "--marker", "-m", help="Leading emoji (default 📟)"),
    prefix: str | None = typer.Option(None, "--prefix", "-p", help="Overrides the configured prefix"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Send a rate-limited alert."""
    engine = make_engine(ctx)
    try:
        outcome = engine.send_alert(alert_type, body, marker, prefix)
    except InvalidArgumentError as e:
        fail(e)
    print_outcome(outcome, as_json=json_out)


@app.command("smart")
def send_smart(
    ctx: typer.Context,
    alert_type: str = typer.Argument(...),
    identifier: str = typer.Argument(...),
    body: str = typer.Argument(...),
    marker: str | None = typer.Option(None, "--marker", "-m", help="Leading emoji (default 🔔)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Send unless the same body was already delivered."""
    engine = make_engine(ctx)
    try:
        outcome = engine.send_smart_alert(alert_type, identifier, body, marker)
    except InvalidArgumentError as e:
        fail(e)
    print_outcome(outcome, as_json=json_out)


@app.command("recovery")
def send_recovery(
    ctx: typer.Context,
    alert_type: str = typer.Argument(...),
    identifier: str = typer.Argument(...),
    body: str = typer.Argument(...),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Announce recovery of a prior smart alert."""
    engine = make_engine(ctx)
    try:
        outcome = engine.send_recovery_alert(alert_type, identifier, body)
    except InvalidArgumentError as e:
        fail(e)
    print_outcome(outcome, as_json=json_out)


@app.command("clear-rate-limit")
def clear_rate_limit(
    ctx: typer.Context,
    alert_type: str = typer.Argument(...),
) -> None:
    """Forget the cooldown for an alert type."""
    engine = make_engine(ctx)
    try:
        cleared = engine.clear_rate_limit(alert_type)
    except InvalidArgumentError as e:
        fail(e)
    if cleared:
        console.print(f"[green]✓[/green] Cleared rate limit for {alert_type}")
    else:
        console.print(f"[dim]No rate limit stored for {alert_type}[/dim]")
