"""Recording host — keeps every registration in memory, observes nothing.

Used for dry runs (``glasstrace plan``) and to inspect exactly what a plan
asks of the host.
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

from glasstrace.host.base import validate_carrier, validate_unit
from glasstrace.models.flags import MatchSpec, TraceFlag, TracerTarget

logger = logging.getLogger(__name__)


class AttachCall(NamedTuple):
    carrier: Any
    flags: frozenset[TraceFlag]
    target: TracerTarget


class FilterCall(NamedTuple):
    unit: str
    match_spec: MatchSpec
    local_only: bool


class RecordingHost:
    """A ``TraceHost`` that records registrations in call order."""

    def __init__(self) -> None:
        self.calls: list[AttachCall | FilterCall] = []

    @property
    def attach_calls(self) -> list[AttachCall]:
        return [c for c in self.calls if isinstance(c, AttachCall)]

    @property
    def filter_calls(self) -> list[FilterCall]:
        return [c for c in self.calls if isinstance(c, FilterCall)]

    def attach_flags(
        self, carrier: Any, flags: frozenset[TraceFlag], target: TracerTarget
    ) -> None:
        validate_carrier(carrier)
        self.calls.append(AttachCall(carrier, frozenset(flags), target))
        logger.debug("Recorded attach_flags(%r, %s)", carrier, sorted(f.value for f in flags))

    def install_filter(
        self, unit: str, match_spec: MatchSpec, *, local_only: bool = True
    ) -> None:
        validate_unit(unit)
        self.calls.append(FilterCall(unit, match_spec, local_only))
        logger.debug("Recorded install_filter(%r, %s)", unit, match_spec.value)

    def clear(self) -> None:
        self.calls.clear()
