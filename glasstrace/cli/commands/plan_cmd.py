"""``glasstrace plan`` — show the canonical plan without tracing anything."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from glasstrace.api import plan
from glasstrace.cli.commands._input import (
    app_option,
    build_input,
    callback_option,
    pattern_option,
    scope_option,
)
from glasstrace.models.plan import WILDCARD, Scope

console = Console()


def _describe(entry: object) -> tuple[str, str]:
    if isinstance(entry, Scope):
        carriers = ", ".join(
            getattr(carrier, "value", None) or str(carrier) for carrier in entry.carriers
        )
        return "scope", carriers
    if entry == WILDCARD:
        return "pattern", "_ (every module)"
    return "pattern", str(entry)


def plan_cmd(
    patterns: Optional[list[str]] = pattern_option(),
    apps: Optional[list[str]] = app_option(),
    callbacks: Optional[list[str]] = callback_option(),
    scopes: Optional[list[str]] = scope_option(),
) -> None:
    """Print the canonical plan the given input normalizes to."""
    raw_input = build_input(patterns, apps, callbacks, scopes)
    try:
        entries = plan(raw_input)
    except Exception as exc:  # noqa: BLE001
        message = escape(f"{type(exc).__name__}: {exc}")
        console.print(f"[bold red]Callback failed:[/bold red] {message}")
        raise typer.Exit(code=1)

    table = Table(title="Canonical Plan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Entry")
    for position, entry in enumerate(entries):
        kind, text = _describe(entry)
        table.add_row(str(position), kind, text)
    console.print(table)
