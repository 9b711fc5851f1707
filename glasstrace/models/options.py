"""Per-invocation trace options."""

from __future__ import annotations

import os
from collections.abc import Hashable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from glasstrace.config import config


class TraceMode(str, Enum):
    """How sinks are expected to consume the events."""

    TRACE = "trace"
    PROFILE = "profile"


class TraceOptions(BaseModel):
    """Options recognized by ``glasstrace.trace``.

    Unknown keys are ignored so callers can pass a shared options dict.
    A ``pool_size`` of zero or less fails validation.  ``pool_id`` may be
    any hashable value.

    Examples
    --------
    >>> TraceOptions.coerce({"running": True, "colour": "blue"}).running
    True
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    mode: TraceMode = TraceMode.TRACE
    pool_id: Hashable = Field(default_factory=lambda: config.default_pool_id)
    pool_size: int | None = Field(default=None, gt=0)
    send: bool = False
    running: bool = False
    process_dump: bool = False

    @classmethod
    def coerce(cls, opts: TraceOptions | dict[str, Any] | None) -> TraceOptions:
        """Accept ``None``, a plain dict or an existing ``TraceOptions``."""
        if opts is None:
            return cls()
        if isinstance(opts, cls):
            return opts
        return cls.model_validate(opts)

    @property
    def resolved_pool_size(self) -> int:
        """Pool size to start: explicit, then configured, then CPU count."""
        return self.pool_size or config.default_pool_size or os.cpu_count() or 1
