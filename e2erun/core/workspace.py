"""工作目录校验"""

from __future__ import annotations

import os
from pathlib import Path

from e2erun.core.exceptions import InvalidWorkingDirectoryError


def validate_working_directory(marker: str = "kubernetes", cwd: str | None = None) -> Path:
    """当前目录名必须包含 marker（同时接受 kubernetes_skew 这类跨版本目录）"""
    try:
        path = Path(cwd or os.getcwd()).resolve()
    except OSError as e:
        raise InvalidWorkingDirectoryError(f"无法获取当前目录: {e}") from e
    if marker not in path.name:
        raise InvalidWorkingDirectoryError(f"必须在 {marker} 项目根目录下运行: {path}")
    return path
