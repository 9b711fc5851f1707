"""Sink worker — one thread draining one queue into one sink."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Hashable

from glasstrace.models.events import TraceEvent
from glasstrace.sinks import BaseSink

logger = logging.getLogger(__name__)

_STOP = object()


class SinkWorker:
    """Receives events through ``send`` and hands them to its sink in order.

    A failing ``accept`` is logged and the worker moves on to the next
    event.  Once stopped, ``send`` returns ``False`` so hosts can drop
    registrations that still point at this worker.

    Parameters
    ----------
    pool_id:
        Identifier of the owning pool (used in the thread name).
    index:
        Position of the worker in the pool.
    sink:
        The sink receiving this worker's events.
    """

    def __init__(self, pool_id: Hashable, index: int, sink: BaseSink) -> None:
        self.pool_id = pool_id
        self.index = index
        self.sink = sink
        self._queue: queue.Queue[object] = queue.Queue()
        self._running = False
        self._state_lock = threading.Lock()
        self._thread = threading.Thread(
            target=self._run,
            name=f"glasstrace-{pool_id}-{index}",
            daemon=True,
        )
        self._thread.glasstrace_sink = True  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        return f"<SinkWorker {self.pool_id}/{self.index} {self.sink.sink_name}>"

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def thread(self) -> threading.Thread:
        return self._thread

    def start(self) -> None:
        with self._state_lock:
            self._running = True
        self._thread.start()

    def send(self, event: TraceEvent) -> bool:
        """Queue *event* for the sink; ``False`` if the worker has stopped."""
        with self._state_lock:
            if not self._running:
                return False
            self._queue.put(event)
        return True

    def stop(self, timeout: float | None = None) -> None:
        """Drain queued events, close the sink and end the thread."""
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            self._queue.put(_STOP)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Sink worker %r did not stop within %.1fs", self, timeout or 0.0)

    def _run(self) -> None:
        try:
            while True:
                item = self._queue.get()
                if item is _STOP:
                    break
                try:
                    self.sink.accept(item)  # type: ignore[arg-type]
                except Exception as exc:  # noqa: BLE001
                    logger.error("Sink %s failed for event %r: %s", self.sink.sink_name, item, exc)
        finally:
            try:
                self.sink.close()
            except Exception:  # noqa: BLE001
                logger.exception("Sink %s failed to close", self.sink.sink_name)
