"""YAML 读写工具

配置文件（configs/e2erun.yml）和持久化的运行状态（state.yml）都是顶层映射，
报告与元数据文件借用这里的原子写入。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置/状态文件都很小，超过 1MB 视为异常输入
MAX_YAML_SIZE = 1024 * 1024


def atomic_write(path: str | Path, content: str) -> Path:
    """同目录临时文件 + os.replace，返回目标路径"""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    tmp_path = Path(tmp)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return target


def dump_yaml(data: Any) -> str:
    """序列化为块风格 YAML，保持键顺序"""
    return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取顶层为映射的 YAML 文件

    文件不存在或为空时返回空字典。

    异常:
        ValueError: 文件过大，或顶层不是映射
        yaml.YAMLError: YAML 格式错误
    """
    p = Path(path)
    if not p.is_file():
        return {}
    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {p} ({size} 字节，上限 {MAX_YAML_SIZE})")

    with open(p, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{p} 顶层应为映射，实际为 {type(data).__name__}")
    return data


def save_yaml(path: str | Path, data: dict[str, Any]) -> Path:
    path = atomic_write(path, dump_yaml(data))
    logger.debug("已写入 %s", path)
    return path
