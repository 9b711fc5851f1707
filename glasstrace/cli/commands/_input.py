"""Shared CLI options — build trace input from command-line flags."""

from __future__ import annotations

from typing import Any

import typer

from glasstrace.models.plan import App, Callback, Scope


def pattern_option() -> Any:
    return typer.Option(
        None, "--pattern", "-p", help="Module to trace (repeatable). '_' matches every module."
    )


def app_option() -> Any:
    return typer.Option(
        None, "--app", "-a", help="Installed distribution whose modules are traced (repeatable)."
    )


def callback_option() -> Any:
    return typer.Option(
        None, "--callback", "-c", help="'module:function' returning more trace input (repeatable)."
    )


def scope_option() -> Any:
    return typer.Option(
        None,
        "--scope",
        "-s",
        help="Carrier selector (all, processes, new_processes, ...) or thread ident (repeatable).",
    )


def _carrier(value: str) -> Any:
    return int(value) if value.isdigit() else value


def build_input(
    patterns: list[str] | None,
    apps: list[str] | None,
    callbacks: list[str] | None,
    scopes: list[str] | None,
) -> list[Any]:
    """Return trace input for the given flags; all scopes form one ``Scope``."""
    entries: list[Any] = []
    if scopes:
        entries.append(Scope([_carrier(value) for value in scopes]))
    entries.extend(patterns or [])
    entries.extend(App(name) for name in apps or [])
    for ref in callbacks or []:
        try:
            entries.append(Callback.parse(ref))
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--callback") from exc
    return entries
