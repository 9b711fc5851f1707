"""Pool supervisor — registry of running sink pools, keyed by pool id.

The supervisor owns the workers: ``start_pool`` creates and starts a fresh
``SinkPool``, ``stop_pool`` stops every worker of a pool and removes it.
Callers only ever see the pool's ordered worker list.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable
from typing import Any

from glasstrace.config import config
from glasstrace.pool.worker import SinkWorker
from glasstrace.sinks import SinkFactory, create_sink, resolve_sink_factory

logger = logging.getLogger(__name__)


class PoolAlreadyStartedError(ValueError):
    """Raised when starting a pool under an id that is already running."""


class PoolNotFoundError(RuntimeError):
    """Raised when stopping a pool id with no running pool."""


class SinkPool:
    """A fixed set of sink workers started together.

    Parameters
    ----------
    pool_id:
        Identifier of the pool.
    size:
        Number of workers; must be positive.
    sink_kind:
        Registered sink name or sink factory.
    sink_opts:
        Keyword options passed to every sink.
    """

    def __init__(
        self,
        pool_id: Hashable,
        size: int,
        sink_kind: str | SinkFactory,
        sink_opts: dict[str, Any] | None = None,
    ) -> None:
        if size <= 0:
            raise ValueError(f"Pool size must be positive, got {size}")
        factory = resolve_sink_factory(sink_kind)
        self.pool_id = pool_id
        self.sink_kind = sink_kind
        sinks = []
        try:
            for index in range(size):
                sinks.append(create_sink(factory, index, sink_opts))
        except Exception:
            for sink in sinks:
                sink.close()
            raise
        self._workers = [SinkWorker(pool_id, index, sink) for index, sink in enumerate(sinks)]

    @property
    def size(self) -> int:
        return len(self._workers)

    def addresses(self) -> list[SinkWorker]:
        """Workers in index order."""
        return list(self._workers)

    def sink_map(self) -> dict[int, SinkWorker]:
        """Index → worker map used as forwarding target."""
        return dict(enumerate(self._workers))

    def start(self) -> None:
        for worker in self._workers:
            worker.start()

    def stop(self, timeout: float | None = None) -> None:
        for worker in self._workers:
            worker.stop(timeout)


class PoolSupervisor:
    """Starts, lists and stops sink pools by id.

    Safe to use from several threads; concurrent starts under the same
    id let exactly one succeed.
    """

    def __init__(self) -> None:
        self._pools: dict[Hashable, SinkPool] = {}
        self._lock = threading.Lock()

    def start_pool(
        self,
        pool_id: Hashable,
        size: int,
        sink_kind: str | SinkFactory,
        sink_opts: dict[str, Any] | None = None,
    ) -> SinkPool:
        """Create and start a pool.

        Raises
        ------
        PoolAlreadyStartedError
            If a pool with *pool_id* is running.
        UnknownSinkKindError
            If *sink_kind* is not registered.
        """
        with self._lock:
            if pool_id in self._pools:
                raise PoolAlreadyStartedError(f"Sink pool {pool_id!r} is already running")
            pool = SinkPool(pool_id, size, sink_kind, sink_opts)
            pool.start()
            self._pools[pool_id] = pool
        logger.info("Started sink pool %r with %d worker(s)", pool_id, pool.size)
        return pool

    def stop_pool(self, pool_id: Hashable, timeout: float | None = None) -> None:
        """Stop every worker of *pool_id*.

        Raises
        ------
        PoolNotFoundError
            If no pool with *pool_id* is running.
        """
        with self._lock:
            pool = self._pools.pop(pool_id, None)
        if pool is None:
            raise PoolNotFoundError(f"No sink pool {pool_id!r} is running")
        pool.stop(config.worker_join_timeout if timeout is None else timeout)
        logger.info("Stopped sink pool %r", pool_id)

    def get(self, pool_id: Hashable) -> SinkPool | None:
        return self._pools.get(pool_id)

    def running(self) -> list[Hashable]:
        """Ids of the running pools, sorted by their text form."""
        return sorted(self._pools, key=str)

    def stop_all(self) -> None:
        for pool_id in self.running():
            try:
                self.stop_pool(pool_id)
            except PoolNotFoundError:
                pass


# Module-level singleton: import as `from glasstrace.pool.supervisor import supervisor`
supervisor = PoolSupervisor()
