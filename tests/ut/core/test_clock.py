"""取消时钟单元测试"""

from __future__ import annotations

import pytest

from e2erun.core.clock import CancellationClock, OneShotTimer, TimerState
from e2erun.core.exceptions import ClockError


class TestOneShotTimer:
    def test_constructed_fired_and_undrained(self) -> None:
        t = OneShotTimer("t")
        assert t.state == TimerState.FIRED
        assert t.fired

    def test_arm_before_drain_rejected(self) -> None:
        t = OneShotTimer("t")
        with pytest.raises(ClockError, match="stop_and_drain"):
            t.arm(1.0)

    def test_drain_consumes_fire(self) -> None:
        t = OneShotTimer("t")
        assert t.stop_and_drain() is False
        assert t.state == TimerState.DRAINED
        assert not t.fired
        assert t.fired_at is None

    def test_fires_exactly_once(self) -> None:
        t = OneShotTimer("t")
        t.stop_and_drain()
        t.arm(0.05)
        assert t.wait(2.0)
        assert t.state == TimerState.FIRED
        first = t.fired_at
        assert t.wait(0.1)
        assert t.fired_at == first

    def test_rearm_while_armed_rejected(self) -> None:
        t = OneShotTimer("t")
        t.stop_and_drain()
        t.arm(10)
        with pytest.raises(ClockError):
            t.arm(10)
        t.stop_and_drain()

    def test_stop_pending_returns_true(self) -> None:
        t = OneShotTimer("t")
        t.stop_and_drain()
        t.arm(10)
        assert t.stop_and_drain() is True
        assert t.state == TimerState.IDLE
        assert not t.wait(0.05)

    def test_rearm_after_drain_never_sees_stale_fire(self) -> None:
        t = OneShotTimer("t")
        t.stop_and_drain()
        t.arm(0.02)
        assert t.wait(2.0)
        t.stop_and_drain()
        t.arm(10)
        assert not t.fired
        assert not t.wait(0.1)
        t.stop_and_drain()

    def test_stale_generation_discarded(self) -> None:
        t = OneShotTimer("t")
        t.stop_and_drain()
        t.arm(10)
        t._fire(0)
        assert t.state == TimerState.ARMED
        t.stop_and_drain()

    def test_non_positive_deadline_rejected(self) -> None:
        t = OneShotTimer("t")
        t.stop_and_drain()
        with pytest.raises(ClockError):
            t.arm(0)


class TestCancellationClock:
    def test_setup_without_timeout_leaves_idle(self) -> None:
        clock = CancellationClock()
        clock.setup(0)
        assert clock.interrupt.state == TimerState.DRAINED
        assert clock.terminate.state == TimerState.DRAINED
        assert not clock.interrupted

    def test_setup_with_timeout_arms_interrupt(self) -> None:
        clock = CancellationClock()
        clock.setup(0.05)
        assert clock.interrupt.state == TimerState.ARMED
        assert clock.terminate.state == TimerState.DRAINED
        assert clock.interrupt.wait(2.0)
        assert clock.interrupted
        clock.stop()
        assert not clock.interrupted

    def test_stop_cancels_pending(self) -> None:
        clock = CancellationClock()
        clock.setup(30)
        clock.stop()
        assert clock.interrupt.state == TimerState.IDLE
