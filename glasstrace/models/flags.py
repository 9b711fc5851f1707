"""Observation flags, call filters and the forwarding target handed to hosts."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from glasstrace.models.options import TraceMode


class TraceFlag(str, Enum):
    """Flags attached to a carrier.

    * ``call`` — function calls (subject to installed filters).
    * ``procs`` — carrier exit events.
    * ``timestamp`` — events carry the time they were generated.
    * ``arity`` — call events carry the arity, not the arguments.
    * ``return_to`` — events for returns from traced functions.
    * ``set_on_spawn`` — carriers spawned by a traced carrier inherit its flags.
    * ``running`` — carrier scheduled in/out.
    * ``send`` — message sends.
    """

    CALL = "call"
    PROCS = "procs"
    TIMESTAMP = "timestamp"
    ARITY = "arity"
    RETURN_TO = "return_to"
    SET_ON_SPAWN = "set_on_spawn"
    RUNNING = "running"
    SEND = "send"


BASE_FLAGS: frozenset[TraceFlag] = frozenset({
    TraceFlag.CALL,
    TraceFlag.PROCS,
    TraceFlag.TIMESTAMP,
    TraceFlag.ARITY,
    TraceFlag.RETURN_TO,
    TraceFlag.SET_ON_SPAWN,
})


class MatchSpec(str, Enum):
    """Filter installed on a code unit's functions."""

    PASS_THROUGH = "pass_through"
    PROCESS_DUMP = "process_dump"


class TracerTarget(BaseModel):
    """Where a host forwards events: the mode plus the index → sink-worker map.

    The map is built once per ``trace`` call and never mutated afterwards.
    Hosts compare targets by identity.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    mode: TraceMode = TraceMode.TRACE
    sinks: dict[int, Any] = {}

    def route(self, carrier_id: int) -> Any | None:
        """Return the worker responsible for *carrier_id*, or ``None``."""
        if not self.sinks:
            return None
        return self.sinks[carrier_id % len(self.sinks)]

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        return self is other
