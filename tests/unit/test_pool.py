"""Unit tests for sink workers, sink pools and the pool supervisor."""

from __future__ import annotations

import logging
import threading

import pytest

from glasstrace.models.events import EventKind, TraceEvent
from glasstrace.pool.supervisor import (
    PoolAlreadyStartedError,
    PoolNotFoundError,
    PoolSupervisor,
    SinkPool,
)
from glasstrace.pool.worker import SinkWorker
from glasstrace.sinks import UnknownSinkKindError
from glasstrace.sinks.memory import MemorySink


def _event(carrier: int = 1, function: str = "f") -> TraceEvent:
    return TraceEvent(kind=EventKind.CALL, carrier=carrier, module="m", function=function, arity=0)


class _FailingSink:
    """A sink that raises for every event."""

    def __init__(self, index: int = 0) -> None:
        self.closed = False

    @property
    def sink_name(self) -> str:
        return "failing_sink"

    def accept(self, event: TraceEvent) -> None:
        raise RuntimeError("Sink failure for testing")

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Test: SinkWorker
# ---------------------------------------------------------------------------


class TestSinkWorker:
    def test_events_delivered_in_order(self):
        sink = MemorySink()
        worker = SinkWorker("p", 0, sink)
        worker.start()
        for name in ("a", "b", "c"):
            assert worker.send(_event(function=name)) is True
        worker.stop(timeout=5)
        assert [e.function for e in sink.events] == ["a", "b", "c"]
        assert sink.closed is True

    def test_send_after_stop_returns_false(self):
        worker = SinkWorker("p", 0, MemorySink())
        worker.start()
        worker.stop(timeout=5)
        assert worker.send(_event()) is False
        assert worker.is_running is False

    def test_send_before_start_returns_false(self):
        assert SinkWorker("p", 0, MemorySink()).send(_event()) is False

    def test_failing_sink_is_logged_and_worker_keeps_going(self, caplog):
        sink = _FailingSink()
        worker = SinkWorker("p", 0, sink)
        worker.start()
        with caplog.at_level(logging.ERROR, logger="glasstrace.pool.worker"):
            worker.send(_event())
            worker.send(_event())
            worker.stop(timeout=5)
        assert caplog.text.count("failing_sink failed") == 2
        assert sink.closed is True

    def test_accepted_events_survive_concurrent_stop(self):
        sink = MemorySink()
        worker = SinkWorker("p", 0, sink)
        worker.start()
        accepted = []

        def producer():
            for n in range(2000):
                if worker.send(_event(carrier=n)):
                    accepted.append(n)

        thread = threading.Thread(target=producer)
        thread.start()
        worker.stop(timeout=5)
        thread.join(timeout=10)

        assert [e.carrier for e in sink.events] == accepted

    def test_worker_thread_is_marked(self):
        worker = SinkWorker("p", 3, MemorySink())
        assert worker.thread.glasstrace_sink is True
        assert worker.thread.daemon is True
        assert worker.thread.name == "glasstrace-p-3"


# ---------------------------------------------------------------------------
# Test: SinkPool
# ---------------------------------------------------------------------------


class TestSinkPool:
    def test_addresses_in_index_order(self, events):
        pool = SinkPool("p", 3, "memory", {"store": events})
        assert [w.index for w in pool.addresses()] == [0, 1, 2]
        assert pool.sink_map() == dict(enumerate(pool.addresses()))

    def test_each_worker_gets_its_own_sink(self):
        pool = SinkPool("p", 2, "memory")
        sinks = [w.sink for w in pool.addresses()]
        assert sinks[0] is not sinks[1]
        assert [s.sink_name for s in sinks] == ["memory[0]", "memory[1]"]

    def test_sinks_closed_when_a_later_sink_fails(self):
        built = []

        def factory(index, **_):
            if index == 2:
                raise OSError("cannot open sink")
            sink = MemorySink(index=index)
            built.append(sink)
            return sink

        with pytest.raises(OSError):
            SinkPool("p", 3, factory)
        assert len(built) == 2
        assert all(sink.closed for sink in built)

    def test_factory_sink_kind(self):
        pool = SinkPool("p", 2, _FailingSink)
        assert all(isinstance(w.sink, _FailingSink) for w in pool.addresses())

    def test_non_positive_size_rejected(self):
        with pytest.raises(ValueError):
            SinkPool("p", 0, "memory")

    def test_unknown_sink_kind(self):
        with pytest.raises(UnknownSinkKindError):
            SinkPool("p", 1, "carrier-pigeon")


# ---------------------------------------------------------------------------
# Test: PoolSupervisor
# ---------------------------------------------------------------------------


class TestPoolSupervisor:
    def test_start_and_stop(self, supervisor: PoolSupervisor):
        pool = supervisor.start_pool("p1", 2, "memory")
        assert supervisor.running() == ["p1"]
        assert all(w.is_running for w in pool.addresses())

        supervisor.stop_pool("p1")
        assert supervisor.running() == []
        assert not any(w.is_running for w in pool.addresses())

    def test_duplicate_id_rejected(self, supervisor: PoolSupervisor):
        supervisor.start_pool("dup", 1, "memory")
        with pytest.raises(PoolAlreadyStartedError):
            supervisor.start_pool("dup", 1, "memory")

    def test_distinct_ids_are_independent(self, supervisor: PoolSupervisor):
        supervisor.start_pool("a", 1, "memory")
        supervisor.start_pool("b", 1, "memory")
        supervisor.stop_pool("a")
        assert supervisor.running() == ["b"]

    def test_stop_unknown_pool_raises(self, supervisor: PoolSupervisor):
        with pytest.raises(PoolNotFoundError):
            supervisor.stop_pool("ghost")

    def test_stop_twice_raises(self, supervisor: PoolSupervisor):
        supervisor.start_pool("once", 1, "memory")
        supervisor.stop_pool("once")
        with pytest.raises(PoolNotFoundError):
            supervisor.stop_pool("once")

    def test_id_reusable_after_stop(self, supervisor: PoolSupervisor):
        supervisor.start_pool("again", 1, "memory")
        supervisor.stop_pool("again")
        pool = supervisor.start_pool("again", 1, "memory")
        assert supervisor.get("again") is pool

    def test_failed_start_leaves_no_pool(self, supervisor: PoolSupervisor):
        with pytest.raises(UnknownSinkKindError):
            supervisor.start_pool("bad", 1, "carrier-pigeon")
        assert supervisor.running() == []
