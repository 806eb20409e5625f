"""构建策略: make / quick / bazel"""

from __future__ import annotations

import logging

from e2erun.core.config import Config
from e2erun.core.exceptions import ExecutionError, StrategyError
from e2erun.services.strategies.base import Strategy
from e2erun.utils.shell import CommandExecutor, run_cmd

logger = logging.getLogger(__name__)


class BuildStrategy(Strategy):
    name = "build"

    def __init__(
        self, mode: str, config: Config, *,
        executor: CommandExecutor | None = None,
        cwd: str = ".",
    ) -> None:
        super().__init__(config, executor=executor, cwd=cwd)
        self.mode = mode

    def enabled(self) -> bool:
        return bool(self.mode)

    def execute(self) -> None:
        cmd = self.config.build_commands.get(self.mode)
        if not cmd:
            raise StrategyError(f"未配置构建方式 {self.mode} 的命令")
        try:
            run_cmd(cmd, executor=self.executor, cwd=self.cwd, label=f"build[{self.mode}]")
        except ExecutionError as e:
            raise StrategyError(f"构建失败: {e}") from e
