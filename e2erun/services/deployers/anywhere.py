"""kubernetes-anywhere 部署器

在 kubernetes-anywhere 检出目录中渲染 .config，再通过其 Makefile 部署/销毁。
销毁只在 .config 存在时执行，集群从未部署过时是空操作。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Mapping

from e2erun.core.config import Config
from e2erun.core.exceptions import ConfigError, DeployerError
from e2erun.services.deployers.base import Deployer
from e2erun.services.state_store import resolve_kubeconfig
from e2erun.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """\
.phase1.num_nodes=4
.phase1.cluster_name="{cluster}"
.phase1.cloud_provider="gce"
.phase1.gce.os_image="ubuntu-1604-xenial-v20160420c"
.phase1.gce.instance_type="n1-standard-1"
.phase1.gce.project="{project}"
.phase1.gce.region="us-central1"
.phase1.gce.zone="us-central1-b"
.phase1.gce.network="default"
.phase2.installer_container="docker.io/colemickens/k8s-ignition:latest"
.phase2.docker_registry="gcr.io/google-containers"
.phase2.kubernetes_version="v1.5.1"
.phase2.provider="{phase2_provider}"
.phase3.run_addons=y
.phase3.kube_proxy=y
.phase3.dashboard=y
.phase3.heapster=y
.phase3.kube_dns=y
"""

KUBECONFIG_RELPATH = Path("phase1") / "gce" / ".tmp" / "kubeconfig.json"


class KubernetesAnywhereDeployer(Deployer):
    name = "kubernetes-anywhere"

    def __init__(
        self, config: Config, *,
        executor: CommandExecutor | None = None,
        cwd: str = ".",
        environ: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(config, executor=executor, cwd=cwd, environ=environ)
        if not config.kubernetes_anywhere_path:
            raise ConfigError("kubernetes-anywhere 部署器需要配置 kubernetes_anywhere_path")
        if not config.kubernetes_anywhere_cluster:
            raise ConfigError("kubernetes-anywhere 部署器需要配置 kubernetes_anywhere_cluster")
        self.path = Path(config.kubernetes_anywhere_path)
        self.config_file = self.path / ".config"

    def _write_config(self) -> None:
        content = CONFIG_TEMPLATE.format(
            cluster=self.config.kubernetes_anywhere_cluster,
            project=self.config.kubernetes_anywhere_project,
            phase2_provider=self.config.kubernetes_anywhere_phase2_provider,
        )
        try:
            self.config_file.write_text(content, encoding="utf-8")
        except OSError as e:
            raise DeployerError(f"写入 {self.config_file} 失败: {e}") from e

    def bring_up(self) -> None:
        self._write_config()
        self._run(
            ["make", "-C", str(self.path), "WAIT_FOR_KUBECONFIG=y", "deploy"],
            label="deploy",
        )

    def is_up(self) -> None:
        self._run([self.config.kubectl_command, "get", "nodes"], label="get nodes")

    def install_access_credentials(self) -> None:
        src = self.path / KUBECONFIG_RELPATH
        if not src.exists():
            raise DeployerError(f"kubernetes-anywhere 未生成 kubeconfig: {src}")
        dst = resolve_kubeconfig(self.config.kubeconfig_path, self.environ)
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dst)
        except OSError as e:
            raise DeployerError(f"安装 kubeconfig 到 {dst} 失败: {e}") from e
        logger.info("kubeconfig 已安装: %s", dst)

    def _tear_down(self) -> None:
        if not self.config_file.exists():
            logger.info("%s 不存在，集群未部署，跳过回收", self.config_file)
            return
        self._run(
            ["make", "-C", str(self.path), "FORCE_DESTROY=y", "destroy"],
            label="destroy",
        )
        self.config_file.unlink(missing_ok=True)
