"""PlanDispatcher — applies a canonical plan to an observation host.

Every scope entry attaches the same flag set to each of its carriers;
every pattern entry installs a call filter on its module.  Entries are
applied in plan order.  Scope and filter registrations are independent,
so the order does not change the installed state.
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, Any

from glasstrace.host.base import InvalidPatternError
from glasstrace.models.flags import BASE_FLAGS, MatchSpec, TraceFlag, TracerTarget
from glasstrace.models.options import TraceOptions
from glasstrace.models.plan import WILDCARD, Scope

if TYPE_CHECKING:
    from glasstrace.host.base import TraceHost

logger = logging.getLogger(__name__)


def scope_flags(opts: TraceOptions) -> frozenset[TraceFlag]:
    """Flags attached to every carrier of every scope for *opts*.

    The base set is always present:

    - call: function calls
    - procs: carrier exit events
    - timestamp: events include the current timestamp
    - arity: function calls only include the arity, not arguments
    - return_to: returns from traced functions
    - set_on_spawn: propagate flags to carriers spawned by a traced one

    ``running`` and ``send`` are added when enabled in *opts*.
    """
    flags = set(BASE_FLAGS)
    if opts.running:
        flags.add(TraceFlag.RUNNING)
    if opts.send:
        flags.add(TraceFlag.SEND)
    return frozenset(flags)


def match_spec_for(opts: TraceOptions) -> MatchSpec:
    if opts.process_dump:
        return MatchSpec.PROCESS_DUMP
    return MatchSpec.PASS_THROUGH


def ensure_loaded(unit: str) -> bool:
    """Import *unit* so filters on it can match; failures are tolerated."""
    if unit == WILDCARD or unit in sys.modules:
        return True
    try:
        importlib.import_module(unit)
    except ImportError as exc:
        logger.debug("Module %s could not be loaded (%s); filter has no effect", unit, exc)
        return False
    except Exception as exc:  # noqa: BLE001
        logger.warning("Module %s failed while loading (%r); filter still installed", unit, exc)
        return False
    return True


class PlanDispatcher:
    """Applies canonical plans to a ``TraceHost``.

    Usage
    -----
    >>> dispatcher = PlanDispatcher(host)
    >>> dispatcher.apply(plan, target, opts)
    """

    def __init__(self, host: TraceHost) -> None:
        self._host = host

    @property
    def host(self) -> TraceHost:
        return self._host

    def apply(self, plan: list[Any], target: TracerTarget, opts: TraceOptions) -> None:
        """Issue the registrations for every entry of *plan*, in order.

        Raises
        ------
        InvalidCarrierError
            From the host, for a malformed carrier reference.
        InvalidPatternError
            For an entry that is neither a scope nor a module name.
        """
        flags = scope_flags(opts)
        match_spec = match_spec_for(opts)
        carriers = 0
        units = 0

        for entry in plan:
            if isinstance(entry, Scope):
                for carrier in entry.carriers:
                    self._host.attach_flags(carrier, flags, target)
                    carriers += 1
            elif isinstance(entry, str):
                ensure_loaded(entry)
                self._host.install_filter(entry, match_spec, local_only=True)
                units += 1
            else:
                raise InvalidPatternError(f"Not a module name or wildcard: {entry!r}")

        logger.debug(
            "Plan applied: %d carrier registration(s), %d filter(s), flags=%s",
            carriers,
            units,
            sorted(flag.value for flag in flags),
        )
