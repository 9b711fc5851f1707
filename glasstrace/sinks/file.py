"""File sink — writes events as JSON lines, one file per worker.

Layout: ``{path}.{index}`` — worker 0 of a pool writing to
``traces.jsonl`` produces ``traces.jsonl.0``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from glasstrace.config import config
from glasstrace.models.events import TraceEvent

logger = logging.getLogger(__name__)


class FileSink:
    """Appends every event to a JSON-lines file.

    Parameters
    ----------
    index:
        Worker index within the pool; appended to the file name.
    path:
        Base file path.  Defaults to ``config.file_sink_path``.
    """

    def __init__(self, index: int = 0, path: Path | str | None = None) -> None:
        base = Path(path) if path else config.file_sink_path
        self.path = base.with_name(f"{base.name}.{index}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._index = index
        self._handle = self.path.open("a", encoding="utf-8")
        logger.debug("FileSink %d writing to %s", index, self.path)

    @property
    def sink_name(self) -> str:
        return f"file[{self._index}]"

    def accept(self, event: TraceEvent) -> None:
        self._handle.write(event.model_dump_json() + "\n")

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()

    @staticmethod
    def read_events(path: Path) -> list[TraceEvent]:
        """Read back every event written to *path*."""
        with path.open(encoding="utf-8") as handle:
            return [TraceEvent.model_validate_json(line) for line in handle if line.strip()]
