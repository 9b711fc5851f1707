"""glasstrace data models — Pydantic v2, frozen."""

from glasstrace.models.events import EventKind, TraceEvent
from glasstrace.models.flags import BASE_FLAGS, MatchSpec, TraceFlag, TracerTarget
from glasstrace.models.options import TraceMode, TraceOptions
from glasstrace.models.plan import (
    WILDCARD,
    App,
    Callback,
    PlanEntry,
    Port,
    Scope,
    ScopeSelector,
)

__all__ = [
    # plan
    "WILDCARD",
    "App",
    "Callback",
    "PlanEntry",
    "Port",
    "Scope",
    "ScopeSelector",
    # options
    "TraceMode",
    "TraceOptions",
    # flags
    "BASE_FLAGS",
    "MatchSpec",
    "TraceFlag",
    "TracerTarget",
    # events
    "EventKind",
    "TraceEvent",
]
