"""glasstrace command-line interface (Typer)."""
