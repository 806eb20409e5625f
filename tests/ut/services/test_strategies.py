"""build / stage / extract 策略单元测试"""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from e2erun.core.config import Config
from e2erun.core.exceptions import StateError, StrategyError
from e2erun.core.models import ExtractEntry, ExtractMode
from e2erun.services.strategies import BuildStrategy, ExtractStrategy, StageStrategy


def _make_archive(path: Path, files: dict[str, str]) -> Path:
    with tarfile.open(path, "w:gz") as tar:
        for name, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


class TestBuildStrategy:
    def test_disabled_without_mode(self) -> None:
        assert not BuildStrategy("", Config()).enabled()

    @pytest.mark.parametrize("mode,cmd", [
        ("make", "make release"),
        ("quick", "make quick-release"),
        ("bazel", "bazel build //build/release-tars"),
    ])
    def test_modes(self, mode, cmd, executor) -> None:
        s = BuildStrategy(mode, Config(), executor=executor)
        assert s.enabled()
        s.execute()
        assert executor.commands == [cmd]

    def test_failure(self, executor) -> None:
        executor.fail.add("make")
        with pytest.raises(StrategyError, match="构建失败"):
            BuildStrategy("make", Config(), executor=executor).execute()


class TestStageStrategy:
    def test_appends_destination(self, executor) -> None:
        s = StageStrategy("gs://bucket/ci", Config(), executor=executor)
        assert s.enabled()
        s.execute()
        assert executor.commands == ["gsutil -m cp -r _output/release-tars gs://bucket/ci"]

    def test_disabled(self) -> None:
        assert not StageStrategy("", Config()).enabled()


class TestExtractStrategy:
    def _strategy(self, spec, tmp_path: Path, executor, factory=None, **cfg) -> ExtractStrategy:
        return ExtractStrategy(
            spec, Config(**cfg),
            state_store_factory=factory or MagicMock(),
            executor=executor, cwd=str(tmp_path),
        )

    def test_disabled_when_empty(self, tmp_path: Path, executor) -> None:
        assert not self._strategy([], tmp_path, executor).enabled()

    def test_load_short_circuits(self, tmp_path: Path, executor) -> None:
        factory = MagicMock()
        spec = [
            ExtractEntry(ExtractMode.LOAD, "/saved"),
            ExtractEntry(ExtractMode.RELEASE, "v1.6.0"),
        ]
        self._strategy(spec, tmp_path, executor, factory).execute()
        factory.assert_called_once_with("/saved")
        factory.return_value.load.assert_called_once()
        assert executor.calls == []

    def test_load_failure_wrapped(self, tmp_path: Path, executor) -> None:
        factory = MagicMock()
        factory.return_value.load.side_effect = StateError("no state")
        with pytest.raises(StrategyError, match="no state"):
            self._strategy(
                [ExtractEntry(ExtractMode.LOAD, "/saved")], tmp_path, executor, factory,
            ).execute()

    def test_local_directory(self, tmp_path: Path, executor) -> None:
        src = tmp_path / "src"
        (src / "cluster").mkdir(parents=True)
        (src / "cluster" / "kubectl.sh").write_text("#!/bin/sh\n", encoding="utf-8")
        work = tmp_path / "kubernetes"
        work.mkdir()
        self._strategy(
            [ExtractEntry(ExtractMode.LOCAL, str(src))], work, executor,
        ).execute()
        assert (work / "cluster" / "kubectl.sh").exists()

    def test_local_archive(self, tmp_path: Path, executor) -> None:
        archive = _make_archive(tmp_path / "k8s.tar.gz", {"version": "v1.6.0\n"})
        work = tmp_path / "kubernetes"
        work.mkdir()
        self._strategy(
            [ExtractEntry(ExtractMode.LOCAL, str(archive))], work, executor,
        ).execute()
        assert (work / "version").read_text(encoding="utf-8") == "v1.6.0\n"

    def test_local_missing(self, tmp_path: Path, executor) -> None:
        with pytest.raises(StrategyError, match="本地路径不存在"):
            self._strategy(
                [ExtractEntry(ExtractMode.LOCAL, str(tmp_path / "nope"))], tmp_path, executor,
            ).execute()

    def test_release_url(self, tmp_path: Path, executor) -> None:
        s = self._strategy([], tmp_path, executor)
        assert s.release_url("v1.6.0") == "https://dl.k8s.io/v1.6.0/kubernetes.tar.gz"
        assert s.release_url("gs://b/k.tar.gz") == "gs://b/k.tar.gz"

    def test_release_via_fetch_command(self, tmp_path: Path) -> None:
        archive = _make_archive(tmp_path / "src.tar.gz", {"version": "v1.7.0\n"})
        work = tmp_path / "kubernetes"
        work.mkdir()

        class CopyingExecutor:
            def __init__(self) -> None:
                self.cmds: list[list[str]] = []

            def execute(self, cmd, *, cwd=".", env=None, timeout=None):
                from e2erun.utils.shell import CommandResult
                self.cmds.append(cmd)
                Path(cmd[-1]).write_bytes(archive.read_bytes())
                return CommandResult(0, "", "")

        ex = CopyingExecutor()
        self._strategy(
            [ExtractEntry(ExtractMode.RELEASE, "v1.7.0")], work, ex,
            release_fetch_command="gsutil cp",
        ).execute()
        assert ex.cmds[0][:3] == ["gsutil", "cp", "https://dl.k8s.io/v1.7.0/kubernetes.tar.gz"]
        assert (work / "version").read_text(encoding="utf-8") == "v1.7.0\n"

    def test_release_unpack_rejects_escaping_paths(self, tmp_path: Path, executor) -> None:
        archive = _make_archive(tmp_path / "evil.tar.gz", {"../escape": "x"})
        work = tmp_path / "kubernetes"
        work.mkdir()
        with pytest.raises(StrategyError):
            self._strategy(
                [ExtractEntry(ExtractMode.LOCAL, str(archive))], work, executor,
            ).execute()
        assert not (tmp_path / "escape").exists()
