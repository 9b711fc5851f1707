"""Observation hosts — what a canonical plan is applied to.

``TraceHost`` is the protocol the plan dispatcher drives.  Two hosts ship
with glasstrace: ``ProfileHost`` observes the threads of the running
interpreter; ``RecordingHost`` only records what it was asked to do.
"""

from glasstrace.host.base import (
    HostRejectionError,
    InvalidCarrierError,
    InvalidPatternError,
    TraceHost,
    validate_carrier,
)
from glasstrace.host.profile import ProfileHost
from glasstrace.host.recording import AttachCall, FilterCall, RecordingHost

__all__ = [
    "AttachCall",
    "FilterCall",
    "HostRejectionError",
    "InvalidCarrierError",
    "InvalidPatternError",
    "ProfileHost",
    "RecordingHost",
    "TraceHost",
    "validate_carrier",
]
