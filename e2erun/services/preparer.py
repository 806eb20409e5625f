"""测试环境准备

按 KUBERNETES_PROVIDER 做云厂商相关准备，激活服务账号，
创建产物目录，并把 PRIORITY_PATH 插到 PATH 最前面。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import MutableMapping

from e2erun.core.config import Config
from e2erun.core.exceptions import ConfigError, E2ERunError
from e2erun.utils.shell import CommandExecutor, LocalExecutor, run_cmd

logger = logging.getLogger(__name__)

GCP_PROVIDERS = ("gce", "gke", "kubemark")


class EnvironmentPreparer:
    def __init__(
        self, config: Config, *,
        executor: CommandExecutor | None = None,
        environ: MutableMapping[str, str] | None = None,
        cwd: str = ".",
        home: Path | None = None,
    ) -> None:
        self.config = config
        self.executor = executor or LocalExecutor()
        self.environ = os.environ if environ is None else environ
        self.cwd = cwd
        self.home = home or Path.home()

    @property
    def artifacts_dir(self) -> Path:
        return Path(self.cwd) / self.config.artifacts_dir

    def prepare(self) -> None:
        provider = self.environ.get("KUBERNETES_PROVIDER", "")
        if provider in GCP_PROVIDERS:
            self._prepare_gcp(provider)
        elif provider == "aws":
            run_cmd(
                self.config.aws_prepare_command, executor=self.executor,
                cwd=self.cwd, label="prepare aws",
            )

        self.activate_service_account()

        try:
            self.artifacts_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise E2ERunError(f"创建产物目录失败: {self.artifacts_dir}: {e}") from e

        priority = self.environ.get("PRIORITY_PATH", "")
        if priority:
            self.insert_path(priority)

    def _prepare_gcp(self, provider: str) -> None:
        project = self.environ.get("PROJECT", "")
        if not project:
            raise ConfigError(f"KUBERNETES_PROVIDER={provider} 需要设置 PROJECT")
        self.activate_service_account()
        logger.info("检查 GCP ssh 密钥...")
        key = self.home / ".ssh" / "google_compute_engine"
        for path in (key, key.with_suffix(".pub")):
            if not path.exists():
                raise E2ERunError(f"缺少 GCP ssh 密钥: {path}")

    def activate_service_account(self) -> None:
        """GOOGLE_APPLICATION_CREDENTIALS 已设置时激活服务账号，否则什么都不做"""
        key_file = self.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
        if not key_file:
            return
        run_cmd(
            [self.config.gcloud_binary, "auth", "activate-service-account",
             f"--key-file={key_file}"],
            executor=self.executor, cwd=self.cwd, label="activate service account",
        )

    def insert_path(self, path: str) -> None:
        current = self.environ.get("PATH", "")
        self.environ["PATH"] = f"{path}{os.pathsep}{current}" if current else path
        logger.info("PATH 前插: %s", path)
