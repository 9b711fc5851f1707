"""glasstrace: flexible trace requests for Python threads.

Turns a flexible trace input (module names, installed distributions,
callbacks producing more input, and thread/I-O-handle scopes) into a
canonical plan, and applies that plan to an observation host whose
events are forwarded to a pool of sink workers.
"""

__version__ = "0.1.0"
__description__ = "Trace request front-end with pooled event sinks"

from glasstrace.api import default_host, plan, stop, trace
from glasstrace.models.options import TraceMode, TraceOptions
from glasstrace.models.plan import WILDCARD, App, Callback, Port, Scope, ScopeSelector
from glasstrace.cli.app import app as cli

__all__ = [
    "WILDCARD",
    "App",
    "Callback",
    "Port",
    "Scope",
    "ScopeSelector",
    "TraceMode",
    "TraceOptions",
    "cli",
    "default_host",
    "plan",
    "stop",
    "trace",
    "__version__",
]
