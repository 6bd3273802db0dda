"""
CLI utility helpers - option plumbing, engine construction, output formatting.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from smart_alerts.core.errors import ConfigurationError, SmartAlertError
from smart_alerts.core.settings import SmartAlertSettings, load_settings
from smart_alerts.delivery.pipeline import SendOutcome, SendStatus
from smart_alerts.events.engine import SmartAlertEngine
from smart_alerts.framework.logging import configure_logging

console = Console()
err_console = Console(stderr=True)


@dataclass
class CLIOptions:
    """Global options collected by the root callback, passed via ``ctx.obj``."""

    state_dir: Path | None = None
    console: bool = False
    log_level: str | None = None


def get_options(ctx: typer.Context) -> CLIOptions:
    return ctx.obj if isinstance(ctx.obj, CLIOptions) else CLIOptions()


# ── Settings / engine helpers ────────────────────────────────────────────


def load_cli_settings(ctx: typer.Context) -> SmartAlertSettings:
    """Load settings with CLI overrides and configure logging from them."""
    options = get_options(ctx)
    overrides: dict[str, Any] = {}
    if options.state_dir is not None:
        overrides["state_dir"] = options.state_dir
    if options.log_level is not None:
        overrides["log_level"] = options.log_level
    try:
        settings = load_settings(**overrides)
    except ConfigurationError as e:
        fail(e)
    configure_logging(level=settings.log_level, format=settings.log_format, force=True)
    return settings


def make_engine(ctx: typer.Context) -> SmartAlertEngine:
    """Build the engine the command operates on."""
    settings = load_cli_settings(ctx)
    try:
        return SmartAlertEngine.from_settings(settings, console=get_options(ctx).console)
    except ConfigurationError as e:
        fail(e)


def fail(error: Exception) -> NoReturn:
    """Print an error in red and exit with code 1."""
    if isinstance(error, SmartAlertError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str, ensure_ascii=False))


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}", highlight=False)


def print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


_STATUS_STYLE = {
    SendStatus.DELIVERED: "green",
    SendStatus.FAILED: "bold red",
    SendStatus.NO_CHANNEL: "yellow",
}


def print_outcome(outcome: SendOutcome, *, as_json: bool = False) -> None:
    """Render a ``SendOutcome``; exit 1 when delivery failed."""
    if as_json:
        print_json(outcome.to_dict())
    else:
        style = _STATUS_STYLE.get(outcome.status, "dim")
        console.print(f"[{style}]{outcome.status.value}[/{style}] {outcome.alert_type}", highlight=False)
        if outcome.text and outcome.status is SendStatus.NO_CHANNEL:
            console.print(f"  [dim]{outcome.text}[/dim]", highlight=False)
        if outcome.error is not None:
            err_console.print(f"[bold red]Error[/bold red]: {outcome.error.message}")
    if not outcome.success:
        raise typer.Exit(code=1)
