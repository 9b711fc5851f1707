"""Raw console sink — prints every event as it arrives."""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

from glasstrace.models.events import EventKind, TraceEvent
from glasstrace.sinks._formatting import format_event

_KIND_STYLES: dict[EventKind, str] = {
    EventKind.CALL: "cyan",
    EventKind.RETURN_TO: "green",
    EventKind.EXIT: "bold red",
    EventKind.IN: "dim",
    EventKind.OUT: "dim",
    EventKind.SEND: "magenta",
}


class RawConsoleSink:
    """Prints events to a Rich console.

    Parameters
    ----------
    index:
        Worker index within the pool; shown as a prefix.
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, index: int = 0, console: Console | None = None) -> None:
        self._index = index
        self.console = console or Console()

    @property
    def sink_name(self) -> str:
        return f"raw_console[{self._index}]"

    def accept(self, event: TraceEvent) -> None:
        line = Text(f"[{self._index}] ", style="dim")
        line.append(format_event(event), style=_KIND_STYLES.get(event.kind, ""))
        self.console.print(line)
        if event.dump:
            self.console.print(Text(event.dump, style="dim"))

    def close(self) -> None:
        pass
