"""空部署器 — 集群由外部管理"""

from __future__ import annotations

import logging

from e2erun.services.deployers.base import Deployer

logger = logging.getLogger(__name__)


class NoneDeployer(Deployer):
    name = "none"

    def bring_up(self) -> None:
        logger.info("部署器为 none，跳过启动")

    def is_up(self) -> None:
        return None

    def install_access_credentials(self) -> None:
        return None

    def _tear_down(self) -> None:
        logger.info("部署器为 none，跳过回收")
