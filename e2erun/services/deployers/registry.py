"""部署器工厂 — 配置名称到变体的纯映射

集合封闭：新增变体需同时扩展 DeploymentType 与 _DEPLOYERS。
"""

from __future__ import annotations

import logging
from typing import Mapping

from e2erun.core.config import Config
from e2erun.core.exceptions import ConfigError
from e2erun.core.models import DeploymentType
from e2erun.services.deployers.anywhere import KubernetesAnywhereDeployer
from e2erun.services.deployers.base import Deployer
from e2erun.services.deployers.bash import BashDeployer
from e2erun.services.deployers.kops import KopsDeployer
from e2erun.services.deployers.none import NoneDeployer
from e2erun.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

_DEPLOYERS: dict[DeploymentType, type[Deployer]] = {
    DeploymentType.NONE: NoneDeployer,
    DeploymentType.BASH: BashDeployer,
    DeploymentType.KOPS: KopsDeployer,
    DeploymentType.KUBERNETES_ANYWHERE: KubernetesAnywhereDeployer,
}


def get_deployer(
    name: str, config: Config, *,
    executor: CommandExecutor | None = None,
    cwd: str = ".",
    environ: Mapping[str, str] | None = None,
) -> Deployer:
    """根据名称创建部署器，未知名称抛 ConfigError"""
    try:
        kind = DeploymentType(name)
    except ValueError:
        raise ConfigError(
            f"未知的部署方式: {name!r}（可用: {[d.value for d in DeploymentType]}）"
        ) from None
    deployer = _DEPLOYERS[kind](config, executor=executor, cwd=cwd, environ=environ)
    logger.info("使用部署器: %s", kind.value)
    return deployer
