"""部署器抽象 — 集群生命周期的四个操作

约定:
- bring_up: 集群已存在时也必须收敛到“已启动”（重建由各变体负责）
- is_up: 幂等的健康探测，不改变状态
- install_access_credentials: 准备访问凭证（kubeconfig）
- tear_down: 集群从未启动时是空操作；可能被主流程和信号监听线程同时调用，
  基类用锁串行化，子类实现 _tear_down() 时只需保证重复调用安全
失败统一抛 DeployerError，编排器不重试。
"""

from __future__ import annotations

import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Mapping

from e2erun.core.config import Config
from e2erun.core.exceptions import DeployerError, ExecutionError
from e2erun.utils.shell import CommandExecutor, CommandResult, LocalExecutor, run_cmd

logger = logging.getLogger(__name__)


class Deployer(ABC):
    """部署器基类"""

    name: str = ""

    def __init__(
        self, config: Config, *,
        executor: CommandExecutor | None = None,
        cwd: str = ".",
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self.executor = executor or LocalExecutor()
        self.cwd = cwd
        self.environ = os.environ if environ is None else environ
        self._down_lock = threading.Lock()

    @abstractmethod
    def bring_up(self) -> None:
        """启动集群"""

    @abstractmethod
    def is_up(self) -> None:
        """探测集群是否可用，不可用时抛 DeployerError"""

    @abstractmethod
    def install_access_credentials(self) -> None:
        """准备集群访问凭证"""

    def tear_down(self) -> None:
        """回收集群（串行化，可重入调用）"""
        with self._down_lock:
            self._tear_down()

    @abstractmethod
    def _tear_down(self) -> None:
        """实际回收逻辑"""

    def _env(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        return {**self.environ, **(extra or {})}

    def _run(
        self, cmd: str | list[str], *, label: str,
        env: dict[str, str] | None = None, cwd: str | None = None,
    ) -> CommandResult:
        try:
            return run_cmd(
                cmd, executor=self.executor, cwd=cwd or self.cwd,
                env=self._env() if env is None else env, label=f"{self.name}:{label}",
            )
        except ExecutionError as e:
            raise DeployerError(f"{self.name} {label} 失败: {e}") from e
