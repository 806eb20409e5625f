"""策略抽象 — build / stage / extract

每个策略独立启用，enabled() 为 False 时编排器不调用也不记录。
execute() 失败抛 StrategyError。
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from e2erun.core.config import Config
from e2erun.utils.shell import CommandExecutor, LocalExecutor


class Strategy(ABC):
    """产物获取策略基类"""

    name: str = ""

    def __init__(
        self, config: Config, *,
        executor: CommandExecutor | None = None,
        cwd: str = ".",
    ) -> None:
        self.config = config
        self.executor = executor or LocalExecutor()
        self.cwd = cwd

    @abstractmethod
    def enabled(self) -> bool:
        """本次运行是否启用"""

    @abstractmethod
    def execute(self) -> None:
        """执行策略"""
