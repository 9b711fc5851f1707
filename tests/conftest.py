"""Shared test fixtures for glasstrace."""

from __future__ import annotations

import sys
import types
from collections.abc import Callable, Iterator
from typing import Any

import pytest

from glasstrace.core.bundles import StaticBundles
from glasstrace.host.profile import ProfileHost
from glasstrace.host.recording import RecordingHost
from glasstrace.models.events import TraceEvent
from glasstrace.pool.supervisor import PoolSupervisor


@pytest.fixture
def recording_host() -> RecordingHost:
    """Provide a fresh RecordingHost."""
    return RecordingHost()


@pytest.fixture
def profile_host() -> Iterator[ProfileHost]:
    """Provide a ProfileHost whose hook is always removed afterwards."""
    host = ProfileHost()
    try:
        yield host
    finally:
        host.clear()


@pytest.fixture
def supervisor() -> Iterator[PoolSupervisor]:
    """Provide a private PoolSupervisor; pools left running are stopped."""
    sup = PoolSupervisor()
    try:
        yield sup
    finally:
        sup.stop_all()


@pytest.fixture
def bundles() -> StaticBundles:
    """Provide a bundle source declaring ``my_app`` with modules ``a`` and ``b``."""
    return StaticBundles({"my_app": ["a", "b"], "empty_app": []})


@pytest.fixture
def events() -> list[TraceEvent]:
    """Shared store for ``memory`` sinks."""
    return []


@pytest.fixture
def make_module(monkeypatch: pytest.MonkeyPatch) -> Callable[..., types.ModuleType]:
    """Factory fixture: register a throwaway module built from source text."""

    def _factory(name: str, source: str = "", **attrs: Any) -> types.ModuleType:
        module = types.ModuleType(name)
        exec(compile(source, f"<{name}>", "exec"), module.__dict__)
        for key, value in attrs.items():
            setattr(module, key, value)
        monkeypatch.setitem(sys.modules, name, module)
        return module

    return _factory
