"""Events forwarded from a host to sink workers."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from glasstrace.models.options import TraceMode


class EventKind(str, Enum):
    CALL = "call"
    RETURN_TO = "return_to"
    EXIT = "exit"
    IN = "in"
    OUT = "out"
    SEND = "send"


#: Kinds forwarded in profile mode.
PROFILE_KINDS = frozenset({
    EventKind.CALL,
    EventKind.RETURN_TO,
    EventKind.EXIT,
    EventKind.IN,
    EventKind.OUT,
})


class TraceEvent(BaseModel):
    """A single observation, as rendered by sinks."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    carrier: int
    module: str | None = None
    function: str | None = None
    arity: int | None = None
    args: tuple[str, ...] | None = None
    caller: str | None = None
    timestamp: float | None = None
    dump: str | None = None
    mode: TraceMode = TraceMode.TRACE

    @property
    def mfa(self) -> str:
        """``module:function/arity`` for call-like events."""
        if self.function is None:
            return self.module or "?"
        text = f"{self.module}:{self.function}"
        if self.arity is not None:
            text += f"/{self.arity}"
        return text
