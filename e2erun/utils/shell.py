"""Shell 命令执行工具 — 统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，部署器、策略和编排器都只依赖协议，
测试时注入 mock 实现即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

from e2erun.core.exceptions import ExecutionError

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 — 抽象子进程调用

    调用方阻塞直到子进程退出；timeout 到期时子进程被终止。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地命令执行器（默认实现）"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else cmd
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, env=env, check=False, timeout=timeout,
            )
        except FileNotFoundError as e:
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        except OSError as e:
            # 无执行权限、不是可执行格式等
            return CommandResult(returncode=126, stdout="", stderr=str(e))
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr if isinstance(e.stderr, str) else ""
            return CommandResult(
                returncode=-9, stdout="",
                stderr=f"超时 {timeout}s 后被终止\n{stderr}",
            )
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )


def format_cmd(cmd: str | list[str]) -> str:
    return cmd if isinstance(cmd, str) else shlex.join(cmd)


def run_cmd(
    cmd: str | list[str], *,
    executor: CommandExecutor | None = None,
    cwd: str = ".",
    env: dict[str, str] | None = None,
    timeout: float | None = None,
    label: str = "cmd",
) -> CommandResult:
    """执行命令，失败抛 ExecutionError

    Args:
        cmd: 命令字符串或参数列表
        executor: 命令执行器（不传则使用本地执行器）
        cwd: 工作目录
        env: 环境变量（不传则继承当前进程）
        timeout: 超时秒数
        label: 日志标签
    """
    executor = executor or LocalExecutor()
    logger.info("  %s: %s (cwd=%s)", label, format_cmd(cmd), cwd)
    r = executor.execute(cmd, cwd=cwd, env=env, timeout=timeout)
    if r.stdout:
        logger.debug("  %s stdout:\n%s", label, r.stdout.rstrip())
    if not r.success:
        raise ExecutionError(
            f"{label}失败 (rc={r.returncode}): {r.stderr[:500]}",
            returncode=r.returncode,
        )
    return r


def output(
    cmd: str | list[str], *,
    executor: CommandExecutor | None = None,
    cwd: str = ".",
    env: dict[str, str] | None = None,
    label: str = "cmd",
) -> str:
    """执行命令并返回 stdout"""
    return run_cmd(cmd, executor=executor, cwd=cwd, env=env, label=label).stdout
