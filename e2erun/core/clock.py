"""取消时钟 — 两个独立的一次性计时器

- interrupt: 软截止时间，触发后编排器在步骤之间转入清理
- terminate: 预留的硬截止时间，目前只构造和排空，不装配

计时器状态: idle → armed → fired → drained。
触发只改变状态，不会中断正在执行的子进程；编排器在步骤之间主动检查。
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum

from e2erun.core.exceptions import ClockError

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"
    DRAINED = "drained"


class OneShotTimer:
    """一次性计时器

    构造后处于“已触发未排空”状态，使用前必须先 stop_and_drain()。
    每次 arm 递增 generation，已取消周期里迟到的触发会被丢弃，
    因此重新装配后不会观察到上一周期的触发值。
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._fired_event = threading.Event()
        self._timer: threading.Timer | None = None
        self._generation = 0
        self._fired_at: float | None = time.monotonic()
        self._fired_event.set()
        self._state = TimerState.FIRED

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def fired(self) -> bool:
        """是否已触发且未被排空（只读，不消费触发值）"""
        return self._state == TimerState.FIRED

    @property
    def fired_at(self) -> float | None:
        return self._fired_at

    def arm(self, deadline: float) -> None:
        """在 deadline 秒后触发一次"""
        if deadline <= 0:
            raise ClockError(f"计时器 {self.name} 的截止时间必须为正数: {deadline}")
        with self._lock:
            if self._state in (TimerState.ARMED, TimerState.FIRED):
                raise ClockError(
                    f"计时器 {self.name} 处于 {self._state.value} 状态，"
                    "必须先 stop_and_drain() 再装配"
                )
            self._generation += 1
            timer = threading.Timer(deadline, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
            self._state = TimerState.ARMED
            timer.start()
        logger.debug("计时器 %s 已装配: %.1fs", self.name, deadline)

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state != TimerState.ARMED:
                return
            self._fired_at = time.monotonic()
            self._state = TimerState.FIRED
            self._timer = None
            self._fired_event.set()
        logger.warning("计时器 %s 已触发", self.name)

    def stop_and_drain(self) -> bool:
        """取消待触发的计时；若已触发则消费触发值

        返回:
            True 表示取消了一个尚未触发的计时
        """
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._state == TimerState.ARMED:
                self._state = TimerState.IDLE
                return True
            if self._state == TimerState.FIRED:
                self._state = TimerState.DRAINED
                self._fired_at = None
                self._fired_event.clear()
            return False

    def wait(self, timeout: float | None = None) -> bool:
        """阻塞等待触发，返回是否已触发"""
        return self._fired_event.wait(timeout)


class CancellationClock:
    """interrupt / terminate 两个计时器，归单次编排所有"""

    def __init__(self) -> None:
        self.interrupt = OneShotTimer("interrupt")
        self.terminate = OneShotTimer("terminate")

    def setup(self, timeout: float) -> None:
        """排空构造时的触发值；timeout > 0 时装配 interrupt"""
        self.terminate.stop_and_drain()
        self.interrupt.stop_and_drain()
        if timeout > 0:
            logger.info("测试限时 %.0fs", timeout)
            self.interrupt.arm(timeout)

    @property
    def interrupted(self) -> bool:
        return self.interrupt.fired

    def stop(self) -> None:
        """运行结束时取消未触发的计时器"""
        self.interrupt.stop_and_drain()
        self.terminate.stop_and_drain()
