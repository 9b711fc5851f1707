"""Sink pools — supervised groups of sink worker threads."""

from glasstrace.pool.supervisor import (
    PoolAlreadyStartedError,
    PoolNotFoundError,
    PoolSupervisor,
    SinkPool,
    supervisor,
)
from glasstrace.pool.worker import SinkWorker

__all__ = [
    "PoolAlreadyStartedError",
    "PoolNotFoundError",
    "PoolSupervisor",
    "SinkPool",
    "SinkWorker",
    "supervisor",
]
