"""shell.py 单元测试"""

from __future__ import annotations

import os

import pytest

from e2erun.core.exceptions import ExecutionError
from e2erun.utils.shell import LocalExecutor, format_cmd, output, run_cmd


class TestRunCmd:
    def test_success(self, tmp_path) -> None:
        r = run_cmd("echo hello", cwd=str(tmp_path), label="test")
        assert r.returncode == 0
        assert "hello" in r.stdout

    def test_failure_raises(self, tmp_path) -> None:
        with pytest.raises(ExecutionError, match="cmd失败") as exc:
            run_cmd("false", cwd=str(tmp_path))
        assert exc.value.returncode == 1

    def test_custom_label_in_error(self, tmp_path) -> None:
        with pytest.raises(ExecutionError, match="mybuild失败"):
            run_cmd("false", cwd=str(tmp_path), label="mybuild")

    def test_env_passed(self, tmp_path) -> None:
        env = {**os.environ, "MY_TEST_VAR": "42"}
        r = run_cmd("env", cwd=str(tmp_path), env=env, label="env_test")
        assert "MY_TEST_VAR=42" in r.stdout

    def test_injected_executor(self, executor) -> None:
        run_cmd(["kops", "get", "cluster"], executor=executor, cwd="/w")
        assert executor.calls[0]["cmd"] == "kops get cluster"
        assert executor.calls[0]["cwd"] == "/w"

    def test_output(self, executor) -> None:
        executor.outputs["list"] = "a\nb\n"
        assert output("list-resources", executor=executor) == "a\nb\n"


class TestLocalExecutor:
    def test_missing_binary(self, tmp_path) -> None:
        r = LocalExecutor().execute(["no-such-binary-e2erun"], cwd=str(tmp_path))
        assert r.returncode == 127
        assert not r.success

    def test_not_executable(self, tmp_path) -> None:
        script = tmp_path / "dump.sh"
        script.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
        script.chmod(0o644)
        r = LocalExecutor().execute([str(script)], cwd=str(tmp_path))
        assert r.returncode == 126
        assert not r.success

    def test_timeout(self, tmp_path) -> None:
        r = LocalExecutor().execute(["sleep", "5"], cwd=str(tmp_path), timeout=0.1)
        assert r.returncode == -9


def test_format_cmd() -> None:
    assert format_cmd(["a", "b c"]) == "a 'b c'"
    assert format_cmd("make release") == "make release"
