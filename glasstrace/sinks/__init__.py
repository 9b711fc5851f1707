"""Sink protocol and registry for trace events.

All sinks implement the ``BaseSink`` protocol: a ``sink_name`` property,
an ``accept(event)`` method and a ``close()`` method.  Each sink worker of
a pool owns exactly one sink instance and calls ``accept`` for every event
routed to it.

Sink kinds are looked up by name in ``SINK_KINDS``, or given directly as a
factory called as ``factory(index=worker_index, **sink_opts)``.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

from glasstrace.models.events import TraceEvent
from glasstrace.sinks.file import FileSink
from glasstrace.sinks.memory import MemorySink
from glasstrace.sinks.raw_console import RawConsoleSink


class UnknownSinkKindError(ValueError):
    """Raised when a sink kind name is not registered."""


@runtime_checkable
class BaseSink(Protocol):
    """Protocol that every glasstrace sink must implement.

    Attributes
    ----------
    sink_name : str
        Human-readable identifier for this sink instance
        (e.g. ``"raw_console[0]"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the name of this sink."""
        ...

    def accept(self, event: TraceEvent) -> None:
        """Render, store or forward one event.

        May raise; the worker logs the failure and keeps running.
        """
        ...

    def close(self) -> None:
        """Release resources once the worker stops."""
        ...


SinkFactory = Callable[..., BaseSink]

SINK_KINDS: dict[str, SinkFactory] = {
    "raw_console": RawConsoleSink,
    "file": FileSink,
    "memory": MemorySink,
}


def resolve_sink_factory(kind: str | SinkFactory) -> SinkFactory:
    """Return the factory for *kind* (a registered name or a callable)."""
    if callable(kind):
        return kind
    try:
        return SINK_KINDS[kind]
    except KeyError:
        raise UnknownSinkKindError(
            f"Unknown sink kind {kind!r}; registered kinds: {', '.join(sorted(SINK_KINDS))}"
        ) from None


def create_sink(kind: str | SinkFactory, index: int, sink_opts: dict[str, Any] | None = None) -> BaseSink:
    """Build the sink for worker *index* of a pool."""
    factory = resolve_sink_factory(kind)
    return factory(index=index, **(sink_opts or {}))


__all__ = [
    "SINK_KINDS",
    "BaseSink",
    "FileSink",
    "MemorySink",
    "RawConsoleSink",
    "SinkFactory",
    "UnknownSinkKindError",
    "create_sink",
    "resolve_sink_factory",
]
