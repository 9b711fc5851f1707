"""Unit tests for PlanDispatcher — flag sets, filters and error propagation."""

from __future__ import annotations

import logging
import sys

import pytest

from glasstrace.core.dispatcher import (
    PlanDispatcher,
    ensure_loaded,
    match_spec_for,
    scope_flags,
)
from glasstrace.host.base import InvalidCarrierError, InvalidPatternError
from glasstrace.models.flags import BASE_FLAGS, MatchSpec, TraceFlag, TracerTarget
from glasstrace.models.options import TraceOptions
from glasstrace.models.plan import WILDCARD, Port, Scope, ScopeSelector


@pytest.fixture
def target() -> TracerTarget:
    return TracerTarget(sinks={0: object()})


class TestScopeFlags:
    def test_base_flags_always_present(self):
        flags = scope_flags(TraceOptions())
        assert flags == BASE_FLAGS

    def test_running_flag(self):
        assert TraceFlag.RUNNING in scope_flags(TraceOptions(running=True))
        assert TraceFlag.RUNNING not in scope_flags(TraceOptions(running=False))

    def test_send_flag(self):
        assert TraceFlag.SEND in scope_flags(TraceOptions(send=True))
        assert TraceFlag.SEND not in scope_flags(TraceOptions())

    def test_match_spec(self):
        assert match_spec_for(TraceOptions()) is MatchSpec.PASS_THROUGH
        assert match_spec_for(TraceOptions(process_dump=True)) is MatchSpec.PROCESS_DUMP


class TestApply:
    def test_every_carrier_gets_flags_with_target(self, recording_host, target):
        plan = [Scope([ScopeSelector.EXISTING, 1, Port(7)]), "json"]
        PlanDispatcher(recording_host).apply(plan, target, TraceOptions())

        attach = recording_host.attach_calls
        assert [c.carrier for c in attach] == [ScopeSelector.EXISTING, 1, Port(7)]
        assert all(c.flags == BASE_FLAGS for c in attach)
        assert all(c.target is target for c in attach)

    def test_running_flag_in_every_attach_call(self, recording_host, target):
        plan = [Scope(["processes"]), Scope(["new"]), WILDCARD]
        PlanDispatcher(recording_host).apply(plan, target, TraceOptions(running=True))
        assert recording_host.attach_calls
        assert all(TraceFlag.RUNNING in c.flags for c in recording_host.attach_calls)

    def test_running_flag_absent_by_default(self, recording_host, target):
        plan = [Scope(["processes"]), Scope(["new"]), WILDCARD]
        PlanDispatcher(recording_host).apply(plan, target, TraceOptions())
        assert all(TraceFlag.RUNNING not in c.flags for c in recording_host.attach_calls)

    def test_filters_installed_local_only(self, recording_host, target):
        plan = [Scope(["processes"]), WILDCARD, "json"]
        PlanDispatcher(recording_host).apply(plan, target, TraceOptions())
        filters = recording_host.filter_calls
        assert [f.unit for f in filters] == [WILDCARD, "json"]
        assert all(f.local_only for f in filters)
        assert all(f.match_spec is MatchSpec.PASS_THROUGH for f in filters)

    def test_process_dump_filter(self, recording_host, target):
        plan = [Scope(["processes"]), "json"]
        PlanDispatcher(recording_host).apply(plan, target, TraceOptions(process_dump=True))
        assert recording_host.filter_calls[0].match_spec is MatchSpec.PROCESS_DUMP

    def test_entries_applied_in_plan_order(self, recording_host, target):
        plan = ["a_mod", Scope([1]), "b_mod", Scope([2])]
        PlanDispatcher(recording_host).apply(plan, target, TraceOptions())
        order = [getattr(c, "unit", None) or c.carrier for c in recording_host.calls]
        assert order == ["a_mod", 1, "b_mod", 2]

    def test_unloadable_module_is_tolerated(self, recording_host, target):
        plan = [Scope(["processes"]), "glasstrace_missing_module_xyz"]
        PlanDispatcher(recording_host).apply(plan, target, TraceOptions())
        assert recording_host.filter_calls[0].unit == "glasstrace_missing_module_xyz"

    def test_malformed_carrier_propagates(self, recording_host, target):
        plan = [Scope(["not-a-selector"]), "json"]
        with pytest.raises(InvalidCarrierError):
            PlanDispatcher(recording_host).apply(plan, target, TraceOptions())

    def test_non_pattern_entry_rejected(self, recording_host, target):
        with pytest.raises(InvalidPatternError):
            PlanDispatcher(recording_host).apply([Scope(["all"]), 42], target, TraceOptions())


class TestEnsureLoaded:
    def test_wildcard_is_always_loaded(self):
        assert ensure_loaded(WILDCARD) is True

    def test_imports_module(self, monkeypatch):
        monkeypatch.delitem(sys.modules, "colorsys", raising=False)
        assert ensure_loaded("colorsys") is True
        assert "colorsys" in sys.modules

    def test_missing_module(self):
        assert ensure_loaded("glasstrace_missing_module_xyz") is False

    def test_module_raising_on_import(self, tmp_path, monkeypatch, caplog):
        (tmp_path / "gt_raises_on_import.py").write_text("raise RuntimeError('boom at import')\n")
        monkeypatch.syspath_prepend(str(tmp_path))
        with caplog.at_level(logging.WARNING, logger="glasstrace.core.dispatcher"):
            assert ensure_loaded("gt_raises_on_import") is False
        assert "gt_raises_on_import" in caplog.text

    def test_module_with_syntax_error(self, tmp_path, monkeypatch):
        (tmp_path / "gt_bad_syntax.py").write_text("def broken(:\n")
        monkeypatch.syspath_prepend(str(tmp_path))
        assert ensure_loaded("gt_bad_syntax") is False

    def test_relative_name(self):
        assert ensure_loaded(".relative_unit") is False

    def test_broken_unit_does_not_stop_the_plan(
        self, tmp_path, monkeypatch, recording_host, target
    ):
        (tmp_path / "gt_broken_unit.py").write_text("raise RuntimeError('boom at import')\n")
        monkeypatch.syspath_prepend(str(tmp_path))
        plan = [Scope(["processes"]), "gt_broken_unit", "json"]
        PlanDispatcher(recording_host).apply(plan, target, TraceOptions())
        assert [f.unit for f in recording_host.filter_calls] == ["gt_broken_unit", "json"]
