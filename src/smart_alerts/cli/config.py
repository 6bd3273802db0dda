"""
CLI: ``smart-alerts config`` - configuration inspection.
"""

from __future__ import annotations

import typer
from rich.table import Table

from smart_alerts.cli.utils import console, load_cli_settings, print_json

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show effective configuration (secrets masked)."""
    settings = load_cli_settings(ctx)
    data = settings.redacted()

    if json_out:
        print_json(data)
        return

    table = Table(title="smart-alerts settings")
    table.add_column("Setting")
    table.add_column("Value", overflow="fold")
    for key, value in data.items():
        if isinstance(value, list):
            value = ", ".join(value)
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)

    if settings.has_telegram:
        sink = "telegram"
    elif settings.webhook_url:
        sink = "webhook"
    else:
        sink = "none (alerts are logged only)"
    console.print(f"\n[bold]Alert sink:[/bold] {sink}")
