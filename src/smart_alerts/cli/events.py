"""
CLI: ``smart-alerts event`` - register, recover and inspect event records.
"""

from __future__ import annotations

import typer

from smart_alerts.cli.utils import console, fail, make_engine, print_dict, print_json, print_table
from smart_alerts.core.clock import to_iso8601
from smart_alerts.core.errors import InvalidArgumentError
from smart_alerts.events.recovery import DEFAULT_RECOVERY_MESSAGE

app = typer.Typer(no_args_is_help=True)


@app.command("register")
def register(
    ctx: typer.Context,
    event_type: str = typer.Argument(..., help="Event type, e.g. service_down"),
    identifier: str = typer.Argument(..., help="Instance identifier, e.g. nginx"),
    message: str = typer.Argument(..., help="Alert message"),
    details: str = typer.Option("", "--details", "-d", help="Extra context stored with the record"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Register an occurrence of a failing condition."""
    engine = make_engine(ctx)
    try:
        result = engine.register_event(event_type, identifier, message, details)
    except InvalidArgumentError as e:
        fail(e)

    if json_out:
        print_json(result.to_dict())
        return

    if result.critical and result.delivery is not None:
        console.print(f"[bold magenta]critical[/bold magenta] {event_type}/{identifier}: {result.delivery.status.value}")
    elif result.created:
        console.print(f"[green]✓[/green] Registered {event_type}/{identifier} (grace period active)")
    elif result.record is not None:
        state = "grace period active" if result.grace_active else "already alerted"
        console.print(f"[cyan]↻[/cyan] Refreshed {event_type}/{identifier} ({state})")
    else:
        console.print(f"[dim]Not recorded: {event_type}/{identifier}[/dim]")


@app.command("recover")
def recover(
    ctx: typer.Context,
    event_type: str = typer.Argument(...),
    identifier: str = typer.Argument(...),
    message: str = typer.Argument(DEFAULT_RECOVERY_MESSAGE, help="Recovery message"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Report that a condition cleared."""
    engine = make_engine(ctx)
    try:
        outcome = engine.register_recovery(event_type, identifier, message)
    except InvalidArgumentError as e:
        fail(e)

    if json_out:
        print_json(outcome.to_dict())
        return

    if not outcome.found:
        console.print(f"[dim]No active record for {event_type}/{identifier}[/dim]")
    elif outcome.notified:
        console.print(f"[green]✓[/green] Recovered {event_type}/{identifier} after {outcome.downtime}s (notified)")
    else:
        console.print(f"[green]✓[/green] Recovered {event_type}/{identifier} after {outcome.downtime}s (silent)")


@app.command("list")
def list_events(
    ctx: typer.Context,
    pending: bool = typer.Option(False, "--pending", help="Only records still in their grace period"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List active event records."""
    engine = make_engine(ctx)
    records = engine.list_events(pending_only=pending)

    if json_out:
        print_json([r.to_dict() for r in records])
        return

    print_table(
        [
            {
                "event_type": r.event_type,
                "identifier": r.identifier,
                "status": r.status.value,
                "first_seen": to_iso8601(r.first_seen),
                "last_seen": to_iso8601(r.last_seen),
                "message": r.message,
            }
            for r in records
        ],
        title="Events",
    )


@app.command("show")
def show(
    ctx: typer.Context,
    event_type: str = typer.Argument(...),
    identifier: str = typer.Argument(...),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one event record."""
    engine = make_engine(ctx)
    try:
        record = engine.get_event(event_type, identifier)
    except InvalidArgumentError as e:
        fail(e)

    if record is None:
        fail(InvalidArgumentError(f"No active record for {event_type}/{identifier}"))

    if json_out:
        print_json(record.to_dict())
    else:
        print_dict(record.to_dict(), title=f"{event_type}/{identifier}")
