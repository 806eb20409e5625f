"""结果记录与报告的单元测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from e2erun.core.exceptions import DeployerError
from e2erun.core.models import TestCaseRecord
from e2erun.core.reporter import (
    JUnitFormatter,
    ResultFormatter,
    ResultRecorder,
    get_formatter,
    register_formatter,
    write_report,
)


def _boom() -> None:
    raise DeployerError("bring up 失败")


class TestResultRecorder:
    def test_records_in_order(self) -> None:
        rec = ResultRecorder()
        rec.wrap("build", lambda: None)
        rec.wrap("extract", lambda: None)
        assert [r.name for r in rec.records] == ["build", "extract"]
        assert all(r.classname == "e2e.go" for r in rec.records)

    def test_failure_recorded_and_reraised(self) -> None:
        rec = ResultRecorder()
        with pytest.raises(DeployerError):
            rec.wrap("bring_up", _boom)
        [r] = rec.records
        assert r.failed
        assert "bring up 失败" in r.failure

    def test_summary_counts(self) -> None:
        rec = ResultRecorder()
        rec.wrap("a", lambda: None)
        with pytest.raises(DeployerError):
            rec.wrap("b", _boom)
        rec.wrap("c", lambda: None)
        s = rec.summary()
        assert s["tests"] == 3
        assert s["failures"] == 1
        assert s["time"] >= 0

    def test_records_is_copy(self) -> None:
        rec = ResultRecorder()
        rec.wrap("a", lambda: None)
        rec.records.clear()
        assert len(rec.records) == 1


class TestJUnitFormatter:
    def test_escapes_failure_text(self) -> None:
        records = [TestCaseRecord(name="up<x>", classname="e2e.go", time=1.5,
                                  failure="<rc=1> & stderr")]
        xml = JUnitFormatter().format(records, {"tests": 1, "failures": 1, "time": 2.0})
        assert "&lt;rc=1&gt; &amp; stderr" in xml
        assert 'name="up&lt;x&gt;"' in xml
        assert 'tests="1"' in xml and 'failures="1"' in xml

    def test_passed_case_has_no_failure(self) -> None:
        records = [TestCaseRecord(name="ok", classname="e2e.go", time=0.1)]
        xml = JUnitFormatter().format(records, {"tests": 1, "failures": 0, "time": 0.1})
        assert "<failure>" not in xml
        assert xml.startswith('<?xml version="1.0"')


class TestWriteReport:
    def test_junit_default(self, tmp_path: Path) -> None:
        rec = ResultRecorder()
        rec.wrap("a", lambda: None)
        path = write_report(rec, str(tmp_path / "dump"))
        assert path.endswith("junit_runner.xml")
        assert '<testcase classname="e2e.go" name="a"' in Path(path).read_text(encoding="utf-8")

    def test_json_switches_suffix(self, tmp_path: Path) -> None:
        rec = ResultRecorder()
        with pytest.raises(DeployerError):
            rec.wrap("b", _boom)
        path = write_report(rec, str(tmp_path), fmt="json")
        assert path.endswith("junit_runner.json")
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        assert data["summary"]["failures"] == 1
        assert data["testcases"][0]["name"] == "b"

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="不支持的格式"):
            get_formatter("html")

    def test_register_custom_formatter(self, tmp_path: Path) -> None:
        class CountFormatter(ResultFormatter):
            def format(self, records, summary):
                return str(summary["tests"])

            def extension(self):
                return "txt"

        register_formatter("count", CountFormatter)
        rec = ResultRecorder()
        rec.wrap("a", lambda: None)
        path = write_report(rec, str(tmp_path), fmt="count")
        assert Path(path).read_text(encoding="utf-8") == "1"
