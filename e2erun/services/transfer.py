"""文件传输 — 本地路径直接复制，远端位置（含 "://"）走外部复制命令

状态保存/恢复与版本发布共用。
"""

from __future__ import annotations

import logging
import shlex
import shutil
from pathlib import Path

from e2erun.utils.shell import CommandExecutor, run_cmd

logger = logging.getLogger(__name__)


def is_remote(location: str) -> bool:
    return "://" in location


def join_location(base: str, name: str) -> str:
    if is_remote(base):
        return f"{base.rstrip('/')}/{name}"
    return str(Path(base) / name)


class FileTransfer:
    """在本地路径与远端位置之间复制单个文件"""

    def __init__(
        self, remote_copy_command: str = "gsutil cp",
        executor: CommandExecutor | None = None,
    ) -> None:
        self.remote_copy_command = remote_copy_command
        self.executor = executor

    def copy(self, src: str, dst: str, *, label: str = "copy") -> None:
        """复制 src 到 dst，失败抛 OSError 或 ExecutionError"""
        if is_remote(src) or is_remote(dst):
            cmd = shlex.split(self.remote_copy_command) + [src, dst]
            run_cmd(cmd, executor=self.executor, label=label)
            return
        dst_path = Path(dst)
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dst_path)
        logger.info("  %s: %s -> %s", label, src, dst)
