"""Entry points: ``trace``, ``stop`` and ``plan``.

``trace`` starts a sink pool, normalizes the input into a canonical plan
and applies it to the observation host.  It returns once every
registration has been issued; it does not wait for events.

Examples
--------
Trace calls into ``json`` from every existing thread, printing events::

    >>> import glasstrace
    >>> glasstrace.trace("json")
    >>> ...
    >>> glasstrace.stop()

Trace a distribution's modules into JSON-lines files, with scheduling
events, under a named pool::

    >>> glasstrace.trace(
    ...     [glasstrace.App("requests"), glasstrace.Scope(["new_processes"])],
    ...     "file",
    ...     {"path": "requests.jsonl"},
    ...     {"pool_id": "http", "running": True},
    ... )
    >>> glasstrace.stop("http")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable
from typing import Any

from glasstrace.config import config
from glasstrace.core.bundles import BundleSource
from glasstrace.core.dispatcher import PlanDispatcher
from glasstrace.core.normalizer import normalize
from glasstrace.host.base import TraceHost
from glasstrace.host.profile import ProfileHost
from glasstrace.models.flags import TracerTarget
from glasstrace.models.options import TraceOptions
from glasstrace.models.plan import PlanEntry
from glasstrace.pool.supervisor import PoolSupervisor
from glasstrace.pool.supervisor import supervisor as default_supervisor
from glasstrace.sinks import SinkFactory

logger = logging.getLogger(__name__)

_default_host: ProfileHost | None = None
_default_host_lock = threading.Lock()


def default_host() -> ProfileHost:
    """Return the process-wide ``ProfileHost``, creating it on first use."""
    global _default_host
    with _default_host_lock:
        if _default_host is None:
            _default_host = ProfileHost()
        return _default_host


def plan(raw_input: Any, bundles: BundleSource | None = None) -> list[PlanEntry]:
    """Return the canonical plan for *raw_input* without applying it."""
    return normalize(raw_input, bundles)


def trace(
    raw_input: Any,
    sink_kind: str | SinkFactory | None = None,
    sink_opts: dict[str, Any] | None = None,
    opts: TraceOptions | dict[str, Any] | None = None,
    *,
    host: TraceHost | None = None,
    supervisor: PoolSupervisor | None = None,
    bundles: BundleSource | None = None,
) -> None:
    """Start tracing *raw_input* into a new sink pool.

    Parameters
    ----------
    raw_input:
        A pattern, a scope, or a (nested) list of them.
    sink_kind:
        Registered sink name (``"raw_console"``, ``"file"``, ``"memory"``)
        or sink factory.  Defaults to ``config.default_sink``.
    sink_opts:
        Keyword options passed to every sink of the pool.
    opts:
        ``TraceOptions`` or a dict of them; unknown keys are ignored.

    Raises
    ------
    pydantic.ValidationError
        If ``pool_size`` is zero or negative.
    PoolAlreadyStartedError
        If a pool with the same ``pool_id`` is already running.
    UnknownSinkKindError
        If *sink_kind* is not registered.
    HostRejectionError
        If the host rejects a carrier or pattern.
    """
    options = TraceOptions.coerce(opts)
    if not isinstance(raw_input, (list, tuple)):
        raw_input = [raw_input]
    supervisor = supervisor or default_supervisor
    host = host or default_host()

    pool = supervisor.start_pool(
        options.pool_id,
        options.resolved_pool_size,
        sink_kind or config.default_sink,
        sink_opts,
    )
    target = TracerTarget(mode=options.mode, sinks=pool.sink_map())

    canonical = normalize(raw_input, bundles)
    logger.debug("Canonical plan for pool %r: %r", options.pool_id, canonical)
    PlanDispatcher(host).apply(canonical, target, options)


def stop(
    pool_id: Hashable | None = None, *, supervisor: PoolSupervisor | None = None
) -> None:
    """Stop the sink pool *pool_id* (``config.default_pool_id`` if omitted).

    Hosts drop the registrations forwarding to the stopped workers the
    next time they try to deliver an event.

    Raises
    ------
    PoolNotFoundError
        If no pool with that id is running.
    """
    supervisor = supervisor or default_supervisor
    supervisor.stop_pool(pool_id if pool_id is not None else config.default_pool_id)
