from __future__ import annotations

from typing import List

import pytest

from mdnote_engine.config import EngineConfig
from mdnote_engine.runtime import telemetry
from mdnote_engine.runtime.reentrancy import DispatchGuard, GuardState
from mdnote_engine.runtime.scheduler import Scheduler


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def make_scheduler() -> tuple[Scheduler, FakeClock]:
    clock = FakeClock()
    return Scheduler(clock=clock), clock


def test_callbacks_wait_for_their_delay() -> None:
    scheduler, clock = make_scheduler()
    ran: List[str] = []
    scheduler.schedule("slow", lambda: ran.append("slow"), delay_ms=50)
    scheduler.schedule("fast", lambda: ran.append("fast"))

    assert scheduler.run_pending() == ["fast"]
    clock.now += 0.05
    assert scheduler.run_pending() == ["slow"]
    assert ran == ["fast", "slow"]
    assert scheduler.pending_keys() == ()


def test_rescheduling_a_key_replaces_it() -> None:
    scheduler, _ = make_scheduler()
    ran: List[int] = []
    for value in range(3):
        scheduler.schedule("rebuild", lambda value=value: ran.append(value))

    scheduler.flush()

    assert ran == [2]


def test_flush_runs_follow_up_callbacks() -> None:
    scheduler, _ = make_scheduler()
    ran: List[str] = []

    def first() -> None:
        ran.append("first")
        scheduler.schedule("second", lambda: ran.append("second"), delay_ms=1000)

    scheduler.schedule("first", first)

    assert scheduler.flush() == ["first", "second"]
    assert ran == ["first", "second"]


def test_cancel_and_close() -> None:
    scheduler, _ = make_scheduler()
    ran: List[str] = []
    scheduler.schedule("a", lambda: ran.append("a"))
    scheduler.schedule("b", lambda: ran.append("b"))

    assert scheduler.cancel("a")
    assert not scheduler.cancel("missing")
    assert scheduler.is_pending("b")

    scheduler.close()
    scheduler.schedule("c", lambda: ran.append("c"))
    scheduler.flush()

    assert ran == []
    assert scheduler.closed


def test_guard_state_stack() -> None:
    guard = DispatchGuard()
    assert guard.idle and guard.state is GuardState.IDLE

    with guard.repairing():
        assert guard.state is GuardState.REPAIRING
        assert guard.suppresses_guard()
        with guard.rebuilding():
            assert guard.state is GuardState.REBUILDING
            assert guard.depth == 2
        assert guard.state is GuardState.REPAIRING

    assert guard.idle
    assert not guard.suppresses_guard()


def test_guard_unwinds_on_error() -> None:
    guard = DispatchGuard()

    with pytest.raises(RuntimeError):
        with guard.rebuilding():
            raise RuntimeError("boom")

    assert guard.idle


def test_guard_rejects_explicit_idle() -> None:
    with pytest.raises(ValueError):
        with DispatchGuard().enter(GuardState.IDLE):
            pass


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MDNOTE_ENGINE_INDENT_WIDTH", "4")
    monkeypatch.setenv("MDNOTE_ENGINE_COPY_INDENT", "\t")

    config = EngineConfig.from_env({"match_threshold": 10})

    assert config.indent_width == 4
    assert config.indent_unit == "    "
    assert config.copy_indent == "\t"
    assert config.match_threshold == 10


def test_config_validates_values() -> None:
    with pytest.raises(ValueError):
        EngineConfig(indent_width=0)
    with pytest.raises(ValueError):
        EngineConfig(snapshot_capacity=0)


def test_span_reraises_and_keeps_running() -> None:
    with pytest.raises(KeyError):
        with telemetry.span("test::failing", component=True, metadata={"case": 1}):
            raise KeyError("missing")

    with telemetry.span("test::ok") as handle:
        handle.add_metadata("status", "ok")

    telemetry.record_event("test.event", data={"value": 1})
    telemetry.skipped("nothing to do", reason_code=3)


def test_unknown_preset_rejected() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(preset="nonsense")
