"""核心数据模型测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from e2erun.core.exceptions import ConfigError
from e2erun.core.models import (
    ExtractEntry,
    ExtractMode,
    RunOptions,
    TestCaseRecord,
    parse_extract_entry,
)


class TestParseExtractEntry:
    def test_explicit_prefixes(self) -> None:
        assert parse_extract_entry("load:gs://bucket/state") == ExtractEntry(
            ExtractMode.LOAD, "gs://bucket/state",
        )
        assert parse_extract_entry("local:/tmp/k8s").mode == ExtractMode.LOCAL
        assert parse_extract_entry("release:v1.6.0").locator == "v1.6.0"

    def test_existing_directory_is_local(self, tmp_path: Path) -> None:
        entry = parse_extract_entry(str(tmp_path))
        assert entry.mode == ExtractMode.LOCAL

    def test_anything_else_is_release(self) -> None:
        entry = parse_extract_entry("https://example.com/k8s.tar.gz")
        assert entry.mode == ExtractMode.RELEASE
        assert entry.locator == "https://example.com/k8s.tar.gz"

    def test_empty_rejected(self) -> None:
        with pytest.raises(ConfigError):
            parse_extract_entry("  ")

    def test_str(self) -> None:
        assert str(ExtractEntry(ExtractMode.LOAD, "/s")) == "load:/s"


class TestRunOptions:
    def test_defaults(self) -> None:
        o = RunOptions()
        assert o.deployment == "bash"
        assert o.check_skew is True
        assert o.timeout == 0.0
        o.validate()

    def test_unknown_build_mode(self) -> None:
        with pytest.raises(ConfigError, match="构建方式"):
            RunOptions(build="cmake").validate()

    def test_negative_timeout(self) -> None:
        with pytest.raises(ConfigError):
            RunOptions(timeout=-1).validate()

    def test_immutable(self) -> None:
        o = RunOptions()
        with pytest.raises(AttributeError):
            o.up = True  # type: ignore[misc]

    def test_deployment_is_none(self) -> None:
        assert RunOptions(deployment="none").deployment_is_none
        assert not RunOptions().deployment_is_none


class TestTestCaseRecord:
    def test_failed(self) -> None:
        assert not TestCaseRecord(name="a").failed
        assert TestCaseRecord(name="a", failure="x").failed
