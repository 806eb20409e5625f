"""运行元数据: 版本探测 + metadata.json"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Mapping

from e2erun.core.exceptions import ExecutionError
from e2erun.utils.shell import CommandExecutor, output
from e2erun.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "unknown"


def find_version(
    *,
    version_file: str = "version",
    version_script: str = "hack/lib/version.sh",
    executor: CommandExecutor | None = None,
    cwd: str = ".",
) -> str:
    """探测被测版本号

    优先读取 version 文件，其次通过仓库内的版本脚本从 git 信息推导，
    都不可用时返回 "unknown"。
    """
    vf = Path(cwd) / version_file
    if vf.exists():
        try:
            return vf.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning("读取版本文件失败: %s", e)

    if (Path(cwd) / version_script).exists():
        script = (
            f". {version_script} && KUBE_ROOT=. kube::version::get_version_vars "
            '&& echo "${KUBE_GIT_VERSION-}"'
        )
        try:
            out = output(
                ["bash", "-c", script], executor=executor, cwd=cwd,
                label="get_version_vars",
            )
            if out.strip():
                return out.strip()
        except ExecutionError as e:
            logger.warning("通过版本脚本获取版本失败: %s", e)

    return UNKNOWN_VERSION


def build_metadata(
    version: str,
    environ: Mapping[str, str] | None = None,
    prefix: str = "BUILD_METADATA_",
) -> dict[str, str]:
    """version / job-version 为同一版本号；环境变量按前缀筛选，去前缀后转小写作为键"""
    environ = os.environ if environ is None else environ
    metadata = {"version": version, "job-version": version}
    pattern = re.compile(rf"^{re.escape(prefix)}(.+)$")
    for key, value in environ.items():
        m = pattern.match(key)
        if m is None:
            continue
        metadata[m.group(1).lower()] = value
    return metadata


def write_metadata(
    output_dir: str, metadata: dict[str, str], filename: str = "metadata.json",
) -> str:
    path = Path(output_dir) / filename
    atomic_write(path, json.dumps(metadata) + "\n")
    logger.info("元数据已保存: %s", path)
    return str(path)
