"""Host observation primitive — the protocol the plan dispatcher drives.

A host exposes two registrations:

* ``attach_flags(carrier, flags, target)`` — start forwarding events of
  *carrier* to the sink workers in *target*;
* ``install_filter(unit, match_spec, local_only=True)`` — start matching
  calls to every function of the module *unit* (or of every module for
  the wildcard).

Both are independent of each other; hosts evaluate them together only
when an event is generated.
"""

from __future__ import annotations

import threading
from typing import Any, Protocol, runtime_checkable

from glasstrace.models.flags import MatchSpec, TraceFlag, TracerTarget
from glasstrace.models.plan import Port, ScopeSelector


class HostRejectionError(ValueError):
    """Raised when the host refuses a registration outright."""


class InvalidCarrierError(HostRejectionError):
    """Raised for a carrier reference the host cannot interpret."""


class InvalidPatternError(HostRejectionError):
    """Raised for a pattern that is not a module name or the wildcard."""


@runtime_checkable
class TraceHost(Protocol):
    """Protocol for observation primitives."""

    def attach_flags(
        self, carrier: Any, flags: frozenset[TraceFlag], target: TracerTarget
    ) -> None:
        """Attach *flags* to *carrier*, forwarding its events to *target*.

        Carriers that no longer exist are tolerated.  Malformed references
        raise ``InvalidCarrierError``.
        """
        ...

    def install_filter(
        self, unit: str, match_spec: MatchSpec, *, local_only: bool = True
    ) -> None:
        """Match calls to all functions, all arities, of module *unit*."""
        ...


def validate_carrier(carrier: Any) -> None:
    """Raise ``InvalidCarrierError`` unless *carrier* is a known reference kind.

    Accepted: ``ScopeSelector`` members, ``threading.Thread`` objects,
    non-negative thread idents and ``Port`` handles.
    """
    if isinstance(carrier, (ScopeSelector, threading.Thread, Port)):
        return
    if isinstance(carrier, int) and not isinstance(carrier, bool) and carrier >= 0:
        return
    raise InvalidCarrierError(f"Not a carrier reference: {carrier!r}")


def validate_unit(unit: Any) -> str:
    if not isinstance(unit, str) or not unit:
        raise InvalidPatternError(f"Not a module name or wildcard: {unit!r}")
    return unit
