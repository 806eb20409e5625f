"""运行状态保存与恢复

--up 之后把访问凭证（kubeconfig）和被测版本号保存到 save 位置，
后续不带 --up 的运行从同一位置恢复，继续对已有集群测试。

位置布局:
    <save>/kubeconfig
    <save>/version     （可选）
    <save>/state.yml   版本号与保存时间
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

import yaml

from e2erun.core.exceptions import E2ERunError, StateError
from e2erun.services.transfer import FileTransfer, join_location
from e2erun.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

KUBECONFIG_NAME = "kubeconfig"
VERSION_NAME = "version"
STATE_NAME = "state.yml"


def resolve_kubeconfig(
    configured: str = "", environ: Mapping[str, str] | None = None,
) -> Path:
    """访问凭证文件位置: 配置项 > $KUBECONFIG（取第一个）> ~/.kube/config"""
    environ = os.environ if environ is None else environ
    if configured:
        return Path(configured).expanduser()
    env_value = environ.get("KUBECONFIG", "")
    if env_value:
        return Path(env_value.split(os.pathsep)[0]).expanduser()
    return Path.home() / ".kube" / "config"


class StateStore:
    """save 位置上的状态读写"""

    def __init__(
        self, location: str, *,
        kubeconfig: Path,
        transfer: FileTransfer,
        version_file: str = "version",
        cwd: str = ".",
    ) -> None:
        self.location = location
        self.kubeconfig = kubeconfig
        self.transfer = transfer
        self.version_file = Path(cwd) / version_file

    def save(self) -> None:
        """保存凭证与版本号，凭证缺失时抛 StateError"""
        if not self.kubeconfig.exists():
            raise StateError(f"访问凭证不存在，无法保存状态: {self.kubeconfig}")
        logger.info("保存运行状态到 %s", self.location)
        version = ""
        try:
            self.transfer.copy(
                str(self.kubeconfig), join_location(self.location, KUBECONFIG_NAME),
                label="save kubeconfig",
            )
            if self.version_file.exists():
                version = self.version_file.read_text(encoding="utf-8").strip()
                self.transfer.copy(
                    str(self.version_file), join_location(self.location, VERSION_NAME),
                    label="save version",
                )
            state = {
                "version": version,
                "saved_at": datetime.now(timezone.utc).isoformat(),
            }
            with tempfile.TemporaryDirectory() as tmp:
                local_state = Path(tmp) / STATE_NAME
                save_yaml(local_state, state)
                self.transfer.copy(
                    str(local_state), join_location(self.location, STATE_NAME),
                    label="save state",
                )
        except (OSError, E2ERunError) as e:
            raise StateError(f"保存状态到 {self.location} 失败: {e}") from e

    def load_kubeconfig(self) -> None:
        """只恢复访问凭证"""
        logger.info("从 %s 恢复 kubeconfig -> %s", self.location, self.kubeconfig)
        try:
            self.transfer.copy(
                join_location(self.location, KUBECONFIG_NAME), str(self.kubeconfig),
                label="load kubeconfig",
            )
        except (OSError, E2ERunError) as e:
            raise StateError(f"从 {self.location} 恢复 kubeconfig 失败: {e}") from e

    def load(self) -> str:
        """恢复凭证与版本号，返回恢复的版本号（未保存版本时为空串）"""
        self.load_kubeconfig()
        version = self._saved_version()
        if not version:
            logger.info("保存的状态中没有版本号")
            return ""
        try:
            self.transfer.copy(
                join_location(self.location, VERSION_NAME), str(self.version_file),
                label="load version",
            )
        except (OSError, E2ERunError) as e:
            raise StateError(f"从 {self.location} 恢复版本号失败: {e}") from e
        logger.info("已恢复版本: %s", version)
        return version

    def _saved_version(self) -> str:
        with tempfile.TemporaryDirectory() as tmp:
            local_state = Path(tmp) / STATE_NAME
            try:
                self.transfer.copy(
                    join_location(self.location, STATE_NAME), str(local_state),
                    label="load state",
                )
            except (OSError, E2ERunError) as e:
                raise StateError(f"读取 {self.location} 的状态文件失败: {e}") from e
            try:
                state = load_yaml(local_state)
            except (ValueError, yaml.YAMLError) as e:
                raise StateError(f"{self.location} 的状态文件无效: {e}") from e
            return str(state.get("version", ""))
