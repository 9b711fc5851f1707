"""``glasstrace run SCRIPT [ARGS]...`` — run a script under tracing.

Starts a sink pool, applies the plan built from the command-line input,
runs the script as ``__main__`` and stops the pool when it finishes.
"""

from __future__ import annotations

import runpy
import sys
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from glasstrace.api import stop, trace
from glasstrace.cli.commands._input import (
    app_option,
    build_input,
    callback_option,
    pattern_option,
    scope_option,
)
from glasstrace.config import config
from glasstrace.host.profile import ProfileHost
from glasstrace.models.options import TraceMode
from glasstrace.pool.supervisor import PoolAlreadyStartedError, supervisor
from glasstrace.sinks import UnknownSinkKindError

console = Console(stderr=True)


def run_cmd(
    ctx: typer.Context,
    script: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Python script to run under tracing."
    ),
    patterns: Optional[list[str]] = pattern_option(),
    apps: Optional[list[str]] = app_option(),
    callbacks: Optional[list[str]] = callback_option(),
    scopes: Optional[list[str]] = scope_option(),
    sink: str = typer.Option(
        None, "--sink", help="Sink kind (raw_console, file, memory). Default from config."
    ),
    out: Optional[Path] = typer.Option(
        None, "--out", "-o", help="Base path for the file sink."
    ),
    mode: TraceMode = typer.Option(TraceMode.TRACE, "--mode", "-m", help="trace or profile."),
    pool_id: str = typer.Option(
        None, "--pool-id", help="Sink pool identifier. Default from config."
    ),
    pool_size: Optional[int] = typer.Option(
        None, "--pool-size", "-n", help="Number of sink workers. Default: CPU count."
    ),
    running: bool = typer.Option(False, "--running", help="Emit scheduling in/out events."),
    send: bool = typer.Option(False, "--send", help="Observe message sends."),
    process_dump: bool = typer.Option(
        False, "--process-dump", help="Attach a stack snapshot to every call event."
    ),
) -> None:
    """Run SCRIPT with the given trace input applied; extra arguments go to SCRIPT."""
    raw_input = build_input(patterns, apps, callbacks, scopes)
    pool_id = pool_id or config.default_pool_id
    sink_kind = sink or config.default_sink
    sink_opts = {"path": str(out)} if out is not None and sink_kind == "file" else None
    opts = {
        "mode": mode,
        "pool_id": pool_id,
        "pool_size": pool_size,
        "running": running,
        "send": send,
        "process_dump": process_dump,
    }

    host = ProfileHost()
    try:
        trace(raw_input, sink_kind, sink_opts, opts, host=host)
    except (ValidationError, PoolAlreadyStartedError, UnknownSinkKindError) as exc:
        console.print(f"[bold red]Cannot start tracing:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    except Exception as exc:  # noqa: BLE001
        # Host rejections and callback failures happen after the pool started.
        host.clear()
        if supervisor.get(pool_id) is not None:
            stop(pool_id)
        console.print(f"[bold red]Cannot start tracing:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    saved_argv = sys.argv
    sys.argv = [str(script), *ctx.args]
    try:
        runpy.run_path(str(script), run_name="__main__")
    finally:
        sys.argv = saved_argv
        host.clear()
        stop(pool_id)
