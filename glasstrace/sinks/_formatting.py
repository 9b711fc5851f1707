"""Shared formatting helpers for text sinks."""

from __future__ import annotations

from datetime import datetime

from glasstrace.models.events import EventKind, TraceEvent


def format_timestamp(event: TraceEvent) -> str:
    """Return ``HH:MM:SS.ffffff`` for the event, or ``-`` without a timestamp."""
    if event.timestamp is None:
        return "-"
    return datetime.fromtimestamp(event.timestamp).strftime("%H:%M:%S.%f")


def format_event(event: TraceEvent) -> str:
    """Return a one-line, human-readable rendering of *event*.

    Examples
    --------
    >>> from glasstrace.models.events import TraceEvent
    >>> format_event(TraceEvent(kind="call", carrier=7, module="m", function="f", arity=2))
    '- <7> call m:f/2'
    """
    head = f"{format_timestamp(event)} <{event.carrier}> {event.kind.value}"
    if event.kind is EventKind.CALL:
        text = f"{head} {event.mfa}"
        if event.args is not None:
            text += f" ({', '.join(event.args)})"
        return text
    if event.kind is EventKind.RETURN_TO:
        return f"{head} {event.module}:{event.function} -> {event.caller}"
    return head
