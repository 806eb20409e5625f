"""中断信号监听 — 收到 ^C 后尽力回收集群

信号处理函数只把信号放进队列，回收逻辑在独立的监听线程里执行，
主流程不被打断。每次收到信号都会重新执行一遍回收（不去抖），
依赖 Deployer.tear_down 的串行化与可重入保证。

回收顺序: 联邦控制面（如启用）→ 主部署器；两者都会尝试。
任一失败时调用 on_failure（默认由编排器写出报告后以状态码 1 退出进程），
不会尝试恢复被中断的运行。
"""

from __future__ import annotations

import logging
import queue
import signal
import threading
from types import FrameType
from typing import Any, Callable

from e2erun.services.deployers.base import Deployer
from e2erun.services.deployers.federation import FederationControlPlane

logger = logging.getLogger(__name__)


class TeardownWatcher:
    def __init__(
        self,
        deployer: Deployer,
        *,
        on_failure: Callable[[], None],
        federation: FederationControlPlane | None = None,
        signum: int = signal.SIGINT,
    ) -> None:
        self.deployer = deployer
        self.federation = federation
        self.signum = signum
        self._on_failure = on_failure
        self._signals: queue.Queue[int | None] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._previous: Any = None
        self.failed = False

    def start(self) -> None:
        """订阅信号并启动监听线程（必须在主线程调用）"""
        self._previous = signal.signal(self.signum, self._handle)
        self._thread = threading.Thread(
            target=self._watch, name="teardown-watcher", daemon=True,
        )
        self._thread.start()
        logger.debug("已订阅信号 %s，^C 时将回收集群", self.signum)

    def _handle(self, signum: int, frame: FrameType | None) -> None:
        self._signals.put(signum)

    def _watch(self) -> None:
        while True:
            signum = self._signals.get()
            if signum is None:
                return
            self.handle_signal()

    def handle_signal(self) -> bool:
        """执行一次回收，返回是否全部成功"""
        logger.warning("捕获 ^C，尝试回收资源...")
        fed_err: Exception | None = None
        err: Exception | None = None
        if self.federation is not None:
            try:
                self.federation.down()
            except Exception as e:  # noqa: BLE001  继续回收主集群
                fed_err = e
                logger.error("回收联邦控制面失败: %s", e)
        try:
            self.deployer.tear_down()
        except Exception as e:  # noqa: BLE001
            err = e
            logger.error("回收部署失败: %s", e)
        if fed_err is not None or err is not None:
            self.failed = True
            self._on_failure()
            return False
        logger.info("中断后回收完成")
        return True

    def stop(self) -> None:
        """恢复原信号处理并结束监听线程

        已排队的信号先于结束标记处理；join 不设超时，等正在进行和排队中的回收全部结束。
        """
        if self._thread is None:
            return
        previous = self._previous if self._previous is not None else signal.SIG_DFL
        signal.signal(self.signum, previous)
        self._signals.put(None)
        self._thread.join()
        self._thread = None
