"""集中配置管理

各部署器、策略和编排器使用的脚本路径、命令、文件名都收敛到 Config。
支持从 YAML 文件加载 + 编程式覆盖；Config 由 CLI 构造后显式传给编排器，
不使用进程级全局配置。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any

import yaml

from e2erun.core.exceptions import ConfigError
from e2erun.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/e2erun.yml"


def _default_build_commands() -> dict[str, str]:
    return {
        "make": "make release",
        "quick": "make quick-release",
        "bazel": "bazel build //build/release-tars",
    }


@dataclass
class Config:
    """编排器配置"""

    # 目录与文件
    artifacts_dir: str = "_artifacts"
    project_dir_marker: str = "kubernetes"
    skew_dir: str = "../kubernetes_skew"
    version_file: str = "version"
    version_script: str = "hack/lib/version.sh"
    kubeconfig_path: str = ""  # 为空时取 $KUBECONFIG，再退回 ~/.kube/config

    # 报告
    report_file: str = "junit_runner.xml"
    report_format: str = "junit"
    report_classname: str = "e2e.go"
    metadata_file: str = "metadata.json"
    metadata_env_prefix: str = "BUILD_METADATA_"

    # 产物获取
    build_commands: dict[str, str] = field(default_factory=_default_build_commands)
    stage_command: str = "gsutil -m cp -r _output/release-tars"
    release_url_template: str = "https://dl.k8s.io/{version}/kubernetes.tar.gz"
    release_fetch_command: str = ""

    # bash 部署器
    up_script: str = "./hack/e2e-internal/e2e-up.sh"
    status_script: str = "./hack/e2e-internal/e2e-status.sh"
    down_script: str = "./hack/e2e-internal/e2e-down.sh"

    # kops 部署器
    kops_binary: str = "kops"
    kops_cluster: str = ""
    kops_state: str = ""
    kops_zones: str = "us-west-2a"
    kops_nodes: int = 4
    kops_ssh_key: str = ""
    kops_ready_timeout: int = 900
    kops_poll_interval: int = 30

    # kubernetes-anywhere 部署器
    kubernetes_anywhere_path: str = ""
    kubernetes_anywhere_cluster: str = ""
    kubernetes_anywhere_phase2_provider: str = "ignition"
    kubernetes_anywhere_project: str = ""

    # 联邦控制面
    federation_up_script: str = "./federation/cluster/federation-up.sh"
    federation_down_script: str = "./federation/cluster/federation-down.sh"

    # 测试与诊断
    test_command: str = "./hack/ginkgo-e2e.sh"
    kubectl_command: str = "./cluster/kubectl.sh"
    dump_command: str = "./cluster/log-dump.sh"
    list_resources_command: str = "./cluster/gce/list-resources.sh"

    # 环境准备 / 发布
    gcloud_binary: str = "gcloud"
    aws_prepare_command: str = "pip install awscli"
    remote_copy_command: str = "gsutil cp"  # 远端位置（含 "://"）的复制命令

    # 放不到字段里的配置项
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，文件不存在则返回默认值"""
        try:
            data = load_yaml(path)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"配置文件无效: {path}: {e}") from e
        if not data:
            return cls()
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        known = {f.name for f in fields(cls)}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        if "build_commands" in matched:
            if not isinstance(matched["build_commands"], dict):
                raise ConfigError("build_commands 必须是 mode -> 命令 的映射")
            matched["build_commands"] = {
                **_default_build_commands(), **matched["build_commands"],
            }
        for int_key in ("kops_nodes", "kops_ready_timeout", "kops_poll_interval"):
            if int_key in matched:
                try:
                    matched[int_key] = int(matched[int_key])
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"{int_key} 必须是整数: {matched[int_key]!r}") from e
        cfg = cls(**matched)
        cfg.extra = extra
        if extra:
            logger.debug("未识别的配置项保存在 extra: %s", sorted(extra))
        return cfg

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
