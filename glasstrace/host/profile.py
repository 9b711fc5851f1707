"""Profile host — observes Python threads through the interpreter profile hook.

Threads are the process carriers.  A single hook is installed on every
thread (``threading.setprofile_all_threads`` on Python 3.12+, otherwise
``sys.setprofile`` for the calling thread plus ``threading.setprofile``
for threads started later) and decides per event whether the current
thread carries flags and whether the called module matches a filter.

Before Python 3.12 the hook cannot reach a thread that is already running,
unless it is the attaching thread or was started after the hook went in.
Such threads are logged at WARNING and left untraced.

Event mapping
-------------
- ``call``       : a Python function of a filtered module is entered (``call`` flag)
- ``return_to``  : a filtered function returns; carries the caller (``return_to`` flag)
- ``exit``       : the bottom frame of a traced thread returns (``procs`` flag)
- ``in``/``out`` : consecutive hook callbacks come from different traced
                   threads (``running`` flag)

Threads have no mailbox, so the ``send`` flag is accepted but never
produces events.  I/O-handle carriers are accepted and ignored.  Sink
worker threads are never traced.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
import traceback
import weakref
from types import FrameType
from typing import Any, Callable

from glasstrace.host.base import validate_carrier, validate_unit
from glasstrace.models.events import PROFILE_KINDS, EventKind, TraceEvent
from glasstrace.models.flags import MatchSpec, TraceFlag, TracerTarget
from glasstrace.models.options import TraceMode
from glasstrace.models.plan import (
    EXISTING_PROCESS_SELECTORS,
    NEW_PROCESS_SELECTORS,
    PORT_SELECTORS,
    WILDCARD,
    Port,
    ScopeSelector,
)

logger = logging.getLogger(__name__)

_THREAD_START_CODE = threading.Thread.start.__code__
# Python 3.12+ can install the hook on threads that are already running.
_HOOKS_RUNNING_THREADS = hasattr(threading, "setprofile_all_threads")
_OWN_PACKAGE = __name__.split(".")[0]
_MAX_REPR = 80


def is_sink_worker(thread: threading.Thread) -> bool:
    return bool(getattr(thread, "glasstrace_sink", False))


def _safe_repr(value: Any) -> str:
    try:
        text = repr(value)
    except Exception:  # noqa: BLE001
        text = f"<{type(value).__name__}>"
    if len(text) > _MAX_REPR:
        text = text[: _MAX_REPR - 3] + "..."
    return text


def _frame_module(frame: FrameType) -> str | None:
    return frame.f_globals.get("__name__")


class _Registration:
    """Flags plus forwarding target attached to one or more threads."""

    __slots__ = ("flags", "target")

    def __init__(self, flags: frozenset[TraceFlag], target: TracerTarget) -> None:
        self.flags = flags
        self.target = target


class ProfileHost:
    """A ``TraceHost`` for the threads of the running interpreter.

    Parameters
    ----------
    clock:
        Source of event timestamps.  Defaults to ``time.time``.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()

        # ident -> registration for threads currently traced
        self._threads: dict[int, _Registration] = {}
        # threads not started yet (explicit Thread carriers, set_on_spawn children)
        self._pending: dict[threading.Thread, _Registration] = {}
        # registration for threads started after a new/new_processes/all scope
        self._new: _Registration | None = None
        self._known_threads: weakref.WeakSet[threading.Thread] = weakref.WeakSet()
        # idents already checked and found untraced
        self._ignored: set[int] = set()
        # idents whose calls have reached the hook since it was installed
        self._hooked: set[int] = set()

        self._filters: dict[str, MatchSpec] = {}
        self._local_only: dict[str, bool] = {}

        self._last_ident: int | None = None
        self._active = False
        self._installed = False
        self._all_threads_hook = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def attach_flags(
        self, carrier: Any, flags: frozenset[TraceFlag], target: TracerTarget
    ) -> None:
        validate_carrier(carrier)
        registration = _Registration(frozenset(flags), target)
        with self._lock:
            if isinstance(carrier, ScopeSelector):
                self._attach_selector(carrier, registration)
            elif isinstance(carrier, Port):
                logger.debug("I/O handle %r ignored: not observable by the profile host", carrier.handle)
            elif isinstance(carrier, threading.Thread):
                self._attach_thread(carrier, registration)
            else:
                self._attach_ident(carrier, registration)
            self._ignored.clear()
            self._refresh()

    def _attach_selector(self, selector: ScopeSelector, registration: _Registration) -> None:
        if selector in EXISTING_PROCESS_SELECTORS:
            unhooked = []
            for thread in threading.enumerate():
                if thread.ident is None or is_sink_worker(thread):
                    continue
                if self._observable(thread):
                    self._threads[thread.ident] = registration
                else:
                    unhooked.append(thread.name)
            if unhooked:
                logger.warning(
                    "%d running thread(s) not traced; this interpreter cannot hook threads "
                    "that are already running: %s",
                    len(unhooked),
                    ", ".join(unhooked),
                )
        if selector in NEW_PROCESS_SELECTORS:
            if self._new is None:
                self._known_threads = weakref.WeakSet(threading.enumerate())
            self._new = registration
        if selector in PORT_SELECTORS:
            logger.debug("Port part of selector %s ignored by the profile host", selector.value)

    def _attach_thread(self, thread: threading.Thread, registration: _Registration) -> None:
        if is_sink_worker(thread):
            logger.debug("Not tracing sink worker %s", thread.name)
        elif thread.ident is None:
            self._pending[thread] = registration
        elif not thread.is_alive():
            logger.debug("Thread %s has exited; not traced", thread.name)
        elif self._observable(thread):
            self._threads[thread.ident] = registration
        else:
            self._warn_unhooked(thread)

    def _attach_ident(self, ident: int, registration: _Registration) -> None:
        live = {thread.ident: thread for thread in threading.enumerate()}
        thread = live.get(ident)
        if thread is None:
            logger.debug("No live thread with ident %d; not traced", ident)
        elif is_sink_worker(thread):
            logger.debug("Not tracing sink worker %s", thread.name)
        elif self._observable(thread):
            self._threads[ident] = registration
        else:
            self._warn_unhooked(thread)

    def _observable(self, thread: threading.Thread) -> bool:
        return (
            _HOOKS_RUNNING_THREADS
            or thread is threading.current_thread()
            or thread.ident in self._hooked
        )

    @staticmethod
    def _warn_unhooked(thread: threading.Thread) -> None:
        logger.warning(
            "Thread %s not traced; this interpreter cannot hook threads that are already running",
            thread.name,
        )

    def install_filter(
        self, unit: str, match_spec: MatchSpec, *, local_only: bool = True
    ) -> None:
        validate_unit(unit)
        with self._lock:
            self._filters[unit] = match_spec
            self._local_only[unit] = local_only
        logger.debug("Filter installed on %s (%s)", unit, match_spec.value)

    # ------------------------------------------------------------------
    # Inspection / teardown
    # ------------------------------------------------------------------

    @property
    def traced_idents(self) -> set[int]:
        return set(self._threads)

    @property
    def filters(self) -> dict[str, MatchSpec]:
        return dict(self._filters)

    @property
    def installed(self) -> bool:
        return self._installed

    def forget(self, target: TracerTarget) -> None:
        """Drop every registration forwarding to *target*."""
        with self._lock:
            self._threads = {
                ident: reg for ident, reg in self._threads.items() if reg.target is not target
            }
            self._pending = {
                thread: reg for thread, reg in self._pending.items() if reg.target is not target
            }
            if self._new is not None and self._new.target is target:
                self._new = None
            self._active = self._has_registrations()
        logger.info("Dropped registrations forwarding to a stopped sink pool")

    def clear(self) -> None:
        """Remove all registrations and filters, and uninstall the hook."""
        with self._lock:
            self._threads.clear()
            self._pending.clear()
            self._new = None
            self._ignored.clear()
            self._filters.clear()
            self._local_only.clear()
            self._hooked.clear()
            self._last_ident = None
            self._active = False
            self._uninstall()

    def _has_registrations(self) -> bool:
        return bool(self._threads or self._pending or self._new is not None)

    def _refresh(self) -> None:
        self._active = self._has_registrations()
        if self._active and not self._installed:
            self._install()
        elif self._active and not self._all_threads_hook:
            # The attaching thread may predate the hook.
            sys.setprofile(self._hook)

    def _install(self) -> None:
        self._all_threads_hook = _HOOKS_RUNNING_THREADS
        if self._all_threads_hook:
            threading.setprofile_all_threads(self._hook)
        else:
            threading.setprofile(self._hook)
            sys.setprofile(self._hook)
        self._installed = True
        logger.debug("Profile hook installed")

    def _uninstall(self) -> None:
        if not self._installed:
            return
        if self._all_threads_hook:
            threading.setprofile_all_threads(None)
        else:
            threading.setprofile(None)
            sys.setprofile(None)
        self._installed = False
        logger.debug("Profile hook removed")

    # ------------------------------------------------------------------
    # Hook
    # ------------------------------------------------------------------

    def _hook(self, frame: FrameType, event: str, arg: Any) -> None:
        if not self._active:
            return
        if event == "call":
            self._on_call(frame)
        elif event == "return":
            self._on_return(frame)

    def _registration(self, ident: int) -> _Registration | None:
        registration = self._threads.get(ident)
        if registration is not None or ident in self._ignored:
            return registration
        thread = threading.current_thread()
        with self._lock:
            self._hooked.add(ident)
            registration = self._pending.pop(thread, None)
            if (
                registration is None
                and self._new is not None
                and not is_sink_worker(thread)
                and thread not in self._known_threads
            ):
                registration = self._new
            if registration is None:
                self._ignored.add(ident)
            else:
                self._threads[ident] = registration
        return registration

    def _match(self, module: str | None) -> MatchSpec | None:
        if module is None:
            return None
        match_spec = self._filters.get(module)
        if match_spec is None and not (
            module == _OWN_PACKAGE or module.startswith(_OWN_PACKAGE + ".")
        ):
            match_spec = self._filters.get(WILDCARD)
        return match_spec

    def _on_call(self, frame: FrameType) -> None:
        ident = threading.get_ident()
        registration = self._registration(ident)
        if registration is None:
            return
        flags = registration.flags
        mode = registration.target.mode

        if TraceFlag.RUNNING in flags:
            self._check_switch(ident, registration)

        if TraceFlag.SET_ON_SPAWN in flags and frame.f_code is _THREAD_START_CODE:
            child = frame.f_locals.get("self")
            if isinstance(child, threading.Thread) and not is_sink_worker(child):
                with self._lock:
                    self._pending[child] = registration

        if TraceFlag.CALL not in flags:
            return
        module = _frame_module(frame)
        match_spec = self._match(module)
        if match_spec is None:
            return

        code = frame.f_code
        arity = code.co_argcount + code.co_kwonlyargcount
        args = None
        if TraceFlag.ARITY not in flags:
            args = tuple(
                _safe_repr(frame.f_locals.get(name)) for name in code.co_varnames[:arity]
            )
        dump = None
        if match_spec is MatchSpec.PROCESS_DUMP and mode is TraceMode.TRACE:
            dump = "".join(traceback.format_stack(frame))

        self._emit(ident, registration, TraceEvent(
            kind=EventKind.CALL,
            carrier=ident,
            module=module,
            function=code.co_name,
            arity=arity,
            args=args,
            timestamp=self._timestamp(flags),
            dump=dump,
            mode=mode,
        ))

    def _on_return(self, frame: FrameType) -> None:
        ident = threading.get_ident()
        registration = self._threads.get(ident)

        if frame.f_back is None:
            # Bottom frame of the thread returning: the thread is finishing.
            self._ignored.discard(ident)
            self._hooked.discard(ident)
            if registration is not None:
                self._threads.pop(ident, None)
                if TraceFlag.PROCS in registration.flags:
                    self._emit(ident, registration, TraceEvent(
                        kind=EventKind.EXIT,
                        carrier=ident,
                        timestamp=self._timestamp(registration.flags),
                        mode=registration.target.mode,
                    ))
            return

        if registration is None:
            return
        flags = registration.flags
        if TraceFlag.RETURN_TO not in flags or TraceFlag.CALL not in flags:
            return
        module = _frame_module(frame)
        if self._match(module) is None:
            return
        caller = frame.f_back
        self._emit(ident, registration, TraceEvent(
            kind=EventKind.RETURN_TO,
            carrier=ident,
            module=module,
            function=frame.f_code.co_name,
            caller=f"{_frame_module(caller)}:{caller.f_code.co_name}",
            timestamp=self._timestamp(flags),
            mode=registration.target.mode,
        ))

    def _check_switch(self, ident: int, registration: _Registration) -> None:
        previous = self._last_ident
        if previous == ident:
            return
        self._last_ident = ident
        if previous is not None:
            previous_registration = self._threads.get(previous)
            if previous_registration is not None and TraceFlag.RUNNING in previous_registration.flags:
                self._emit(previous, previous_registration, TraceEvent(
                    kind=EventKind.OUT,
                    carrier=previous,
                    timestamp=self._timestamp(previous_registration.flags),
                    mode=previous_registration.target.mode,
                ))
        self._emit(ident, registration, TraceEvent(
            kind=EventKind.IN,
            carrier=ident,
            timestamp=self._timestamp(registration.flags),
            mode=registration.target.mode,
        ))

    def _timestamp(self, flags: frozenset[TraceFlag]) -> float | None:
        return self._clock() if TraceFlag.TIMESTAMP in flags else None

    def _emit(self, ident: int, registration: _Registration, event: TraceEvent) -> None:
        target = registration.target
        if target.mode is TraceMode.PROFILE and event.kind not in PROFILE_KINDS:
            return
        worker = target.route(ident)
        if worker is None or not worker.send(event):
            self.forget(target)
