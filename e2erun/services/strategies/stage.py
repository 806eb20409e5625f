"""暂存策略: 把构建产物上传到指定位置"""

from __future__ import annotations

import shlex

from e2erun.core.config import Config
from e2erun.core.exceptions import ExecutionError, StrategyError
from e2erun.services.strategies.base import Strategy
from e2erun.utils.shell import CommandExecutor, run_cmd


class StageStrategy(Strategy):
    name = "stage"

    def __init__(
        self, destination: str, config: Config, *,
        executor: CommandExecutor | None = None,
        cwd: str = ".",
    ) -> None:
        super().__init__(config, executor=executor, cwd=cwd)
        self.destination = destination

    def enabled(self) -> bool:
        return bool(self.destination)

    def execute(self) -> None:
        cmd = shlex.split(self.config.stage_command) + [self.destination]
        try:
            run_cmd(cmd, executor=self.executor, cwd=self.cwd, label="stage")
        except ExecutionError as e:
            raise StrategyError(f"暂存到 {self.destination} 失败: {e}") from e
