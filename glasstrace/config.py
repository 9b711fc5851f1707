"""Runtime configuration — env-driven.

Reads from a .env file and GLASSTRACE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GlassConfig(BaseSettings):
    """Process-wide defaults with environment variable overrides.

    Examples
    --------
    Override via environment::

        export GLASSTRACE_LOG_LEVEL=DEBUG
        export GLASSTRACE_DEFAULT_SINK=file
        export GLASSTRACE_FILE_SINK_PATH=/tmp/traces.jsonl
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GLASSTRACE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"

    # Sink pool defaults
    default_sink: str = "raw_console"
    default_pool_id: str = "default"
    default_pool_size: int | None = Field(default=None, gt=0)  # None: os.cpu_count()
    worker_join_timeout: float = 5.0

    # Sinks
    file_sink_path: Path = Path("glasstrace.jsonl")


# Module-level singleton: import as `from glasstrace.config import config`
config = GlassConfig()
