"""脚本部署器 — 调用项目内的 e2e-up / e2e-status / e2e-down 脚本

访问凭证由 up 脚本生成；down 脚本对不存在的集群是空操作。
"""

from __future__ import annotations

from e2erun.services.deployers.base import Deployer


class BashDeployer(Deployer):
    name = "bash"

    def bring_up(self) -> None:
        self._run(self.config.up_script, label="up")

    def is_up(self) -> None:
        self._run(self.config.status_script, label="status")

    def install_access_credentials(self) -> None:
        return None

    def _tear_down(self) -> None:
        self._run(self.config.down_script, label="down")
