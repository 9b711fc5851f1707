"""Main Typer application — registers all CLI commands.

Entry point: ``glasstrace`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from glasstrace.cli.commands.plan_cmd import plan_cmd
from glasstrace.cli.commands.run_cmd import run_cmd
from glasstrace.config import config

app = typer.Typer(
    name="glasstrace",
    help="glasstrace: trace Python threads from a flexible trace request.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level. Default from GLASSTRACE_LOG_LEVEL."
    ),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# Register subcommands
app.command(
    name="run",
    help="Run a Python script under tracing.",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)(run_cmd)
app.command(name="plan", help="Show the canonical plan for the given input.")(plan_cmd)


@app.command(name="sinks", help="List registered sink kinds.")
def sinks_cmd() -> None:
    """List the sink kinds accepted by ``--sink``."""
    from glasstrace.sinks import SINK_KINDS

    console = Console()
    table = Table(title="Sink Kinds")
    table.add_column("Name", style="cyan")
    table.add_column("Implementation")
    table.add_column("Default", justify="center")
    for name, factory in sorted(SINK_KINDS.items()):
        default = "[green]Yes[/green]" if name == config.default_sink else ""
        table.add_row(name, f"{factory.__module__}.{factory.__qualname__}", default)
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
