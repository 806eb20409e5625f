"""kops 部署器

bring_up 先删除同名残留集群再创建，之后在 kops_ready_timeout 内轮询节点就绪
（重试只发生在本部署器内部）。tear_down 只在 `kops get cluster` 能找到集群时删除。
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Mapping

from e2erun.core.config import Config
from e2erun.core.exceptions import ConfigError, DeployerError
from e2erun.services.deployers.base import Deployer
from e2erun.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class KopsDeployer(Deployer):
    name = "kops"

    def __init__(
        self, config: Config, *,
        executor: CommandExecutor | None = None,
        cwd: str = ".",
        environ: Mapping[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(config, executor=executor, cwd=cwd, environ=environ)
        if not config.kops_cluster:
            raise ConfigError("kops 部署器需要配置 kops_cluster")
        if not config.kops_state:
            raise ConfigError("kops 部署器需要配置 kops_state")
        self.cluster = config.kops_cluster
        self.kops = config.kops_binary
        self._sleep = sleep

    @property
    def _kops_env(self) -> dict[str, str]:
        return self._env({"KOPS_STATE_STORE": self.config.kops_state})

    def _cluster_exists(self) -> bool:
        r = self.executor.execute(
            [self.kops, "get", "cluster", self.cluster],
            cwd=self.cwd, env=self._kops_env,
        )
        return r.success

    def bring_up(self) -> None:
        if self._cluster_exists():
            logger.info("集群 %s 已存在，先删除再重建", self.cluster)
            self._delete()
        cmd = [
            self.kops, "create", "cluster",
            f"--name={self.cluster}",
            f"--node-count={self.config.kops_nodes}",
            f"--zones={self.config.kops_zones}",
            "--yes",
        ]
        if self.config.kops_ssh_key:
            cmd.insert(3, f"--ssh-public-key={self.config.kops_ssh_key}")
        self._run(cmd, label="create cluster", env=self._kops_env)
        self.install_access_credentials()
        self._wait_ready()

    def _ready_nodes(self) -> int:
        r = self.executor.execute(
            [self.config.kubectl_command, "get", "nodes", "--no-headers"],
            cwd=self.cwd, env=self._kops_env,
        )
        if not r.success:
            return -1
        return sum(
            1 for line in r.stdout.splitlines()
            if len(line.split()) > 1 and line.split()[1] == "Ready"
        )

    def _wait_ready(self) -> None:
        # 期望节点数 = 工作节点 + 1 个 master
        expected = self.config.kops_nodes + 1
        deadline = time.monotonic() + self.config.kops_ready_timeout
        while True:
            ready = self._ready_nodes()
            if ready >= expected:
                logger.info("集群 %s 已就绪: %d 个节点", self.cluster, ready)
                return
            if time.monotonic() >= deadline:
                raise DeployerError(
                    f"集群 {self.cluster} 在 {self.config.kops_ready_timeout}s 内未就绪 "
                    f"({max(ready, 0)}/{expected} 节点)"
                )
            logger.info("等待节点就绪: %d/%d", max(ready, 0), expected)
            self._sleep(self.config.kops_poll_interval)

    def is_up(self) -> None:
        expected = self.config.kops_nodes + 1
        ready = self._ready_nodes()
        if ready < 0:
            raise DeployerError(f"kops 集群 {self.cluster} 不可访问")
        if ready < expected:
            raise DeployerError(
                f"kops 集群 {self.cluster} 节点未全部就绪: {ready}/{expected}"
            )

    def install_access_credentials(self) -> None:
        self._run(
            [self.kops, "export", "kubecfg", self.cluster],
            label="export kubecfg", env=self._kops_env,
        )

    def _delete(self) -> None:
        self._run(
            [self.kops, "delete", "cluster", self.cluster, "--yes"],
            label="delete cluster", env=self._kops_env,
        )

    def _tear_down(self) -> None:
        if not self._cluster_exists():
            logger.info("集群 %s 不存在，跳过回收", self.cluster)
            return
        self._delete()
