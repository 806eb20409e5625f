"""联邦控制面 — 主集群之外的第二个控制面，由项目内脚本启动/回收"""

from __future__ import annotations

import logging
import os
from typing import Mapping

from e2erun.core.config import Config
from e2erun.core.exceptions import DeployerError, ExecutionError
from e2erun.utils.shell import CommandExecutor, LocalExecutor, run_cmd

logger = logging.getLogger(__name__)


class FederationControlPlane:
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

    def up(self) -> None:
        self._run(self.config.federation_up_script, "federation up")

    def down(self) -> None:
        self._run(self.config.federation_down_script, "federation down")

    def _run(self, script: str, label: str) -> None:
        try:
            run_cmd(
                script, executor=self.executor, cwd=self.cwd,
                env=dict(self.environ), label=label,
            )
        except ExecutionError as e:
            raise DeployerError(f"{label} 失败: {e}") from e
