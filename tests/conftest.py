"""公共 fixture: 记录调用的命令执行器"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from e2erun.utils.shell import CommandResult, format_cmd


@dataclass
class RecordingExecutor:
    """不启动子进程，只记录命令

    fail: 命令行包含其中任一子串时返回 rc=1
    outputs: 命令行包含 key 时返回对应 stdout（可为列表，按调用顺序依次返回）
    """

    fail: set[str] = field(default_factory=set)
    outputs: dict[str, Any] = field(default_factory=dict)
    calls: list[dict[str, Any]] = field(default_factory=list)

    def execute(
        self, cmd: str | list[str], *, cwd: str = ".",
        env: dict[str, str] | None = None, timeout: float | None = None,
    ) -> CommandResult:
        line = format_cmd(cmd)
        self.calls.append({"cmd": line, "cwd": cwd, "env": env})
        if any(s in line for s in self.fail):
            return CommandResult(returncode=1, stdout="", stderr=f"boom: {line}")
        for key, out in self.outputs.items():
            if key in line:
                if isinstance(out, list):
                    return CommandResult(0, out.pop(0) if len(out) > 1 else out[0], "")
                return CommandResult(0, out, "")
        return CommandResult(0, "", "")

    @property
    def commands(self) -> list[str]:
        return [c["cmd"] for c in self.calls]

    def ran(self, fragment: str) -> bool:
        return any(fragment in c for c in self.commands)


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()
