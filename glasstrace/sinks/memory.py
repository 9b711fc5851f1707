"""In-memory sink — collects events into a list."""

from __future__ import annotations

from glasstrace.models.events import TraceEvent


class MemorySink:
    """Appends events to *store* (shared between workers when given)."""

    def __init__(self, index: int = 0, store: list[TraceEvent] | None = None) -> None:
        self._index = index
        self.events: list[TraceEvent] = store if store is not None else []
        self.closed = False

    @property
    def sink_name(self) -> str:
        return f"memory[{self._index}]"

    def accept(self, event: TraceEvent) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True
