"""运行结果记录与报告 - Strategy 模式

ResultRecorder 在运行期间按顺序追加子操作记录（只追加），
运行结束时由某个 ResultFormatter 序列化一次。
新增格式只需继承 ResultFormatter 并注册即可。
"""

from __future__ import annotations

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable
from xml.sax.saxutils import escape as xml_escape
from xml.sax.saxutils import quoteattr as xml_quoteattr

from e2erun.core.models import TestCaseRecord
from e2erun.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)


class ResultRecorder:
    """子操作记录器

    wrap() 对一次子操作计时并追加记录，失败时记录后继续抛出原异常。
    """

    def __init__(self, classname: str = "e2e.go") -> None:
        self.classname = classname
        self.started = time.monotonic()
        self._records: list[TestCaseRecord] = []
        self._lock = threading.Lock()

    def wrap(self, name: str, func: Callable[[], Any]) -> None:
        """执行 func 并记录名称、耗时与失败信息"""
        logger.info("步骤 '%s' 开始", name)
        start = time.monotonic()
        try:
            func()
        except Exception as e:
            elapsed = time.monotonic() - start
            self._append(TestCaseRecord(
                name=name, classname=self.classname,
                time=elapsed, failure=str(e) or type(e).__name__,
            ))
            logger.error("步骤 '%s' 失败 (%.1fs): %s", name, elapsed, e)
            raise
        elapsed = time.monotonic() - start
        self._append(TestCaseRecord(
            name=name, classname=self.classname, time=elapsed,
        ))
        logger.info("步骤 '%s' 完成 (%.1fs)", name, elapsed)

    def _append(self, record: TestCaseRecord) -> None:
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> list[TestCaseRecord]:
        with self._lock:
            return list(self._records)

    def summary(self) -> dict[str, Any]:
        records = self.records
        return {
            "tests": len(records),
            "failures": sum(1 for r in records if r.failed),
            "time": time.monotonic() - self.started,
        }


# =========================================================================
# Strategy: ResultFormatter
# =========================================================================


class ResultFormatter(ABC):
    """报告格式化策略基类"""

    @abstractmethod
    def format(self, records: list[TestCaseRecord], summary: dict[str, Any]) -> str:
        """将记录列表格式化为字符串"""

    @abstractmethod
    def extension(self) -> str:
        """输出文件扩展名（不含 .）"""


class JUnitFormatter(ResultFormatter):
    def format(self, records: list[TestCaseRecord], summary: dict[str, Any]) -> str:
        testcases = ""
        for r in records:
            attrs = (
                f"classname={xml_quoteattr(r.classname)} "
                f"name={xml_quoteattr(r.name)} time=\"{r.time:.3f}\""
            )
            if r.failed:
                testcases += (
                    f"    <testcase {attrs}>\n"
                    f"        <failure>{xml_escape(r.failure)}</failure>\n"
                    f"    </testcase>\n"
                )
            else:
                testcases += f"    <testcase {attrs}></testcase>\n"

        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<testsuite failures="{summary["failures"]}" '
            f'tests="{summary["tests"]}" time="{summary["time"]:.3f}">\n'
            f"{testcases}"
            "</testsuite>\n"
        )

    def extension(self) -> str:
        return "xml"


class JSONFormatter(ResultFormatter):
    def format(self, records: list[TestCaseRecord], summary: dict[str, Any]) -> str:
        return json.dumps(
            {"summary": summary, "testcases": [asdict(r) for r in records]},
            indent=2, ensure_ascii=False,
        )

    def extension(self) -> str:
        return "json"


# =========================================================================
# 注册制工厂
# =========================================================================

_formatters: dict[str, type[ResultFormatter]] = {
    "junit": JUnitFormatter,
    "json": JSONFormatter,
}


def register_formatter(name: str, cls: type[ResultFormatter]) -> None:
    """注册自定义报告格式"""
    _formatters[name] = cls


def get_formatter(fmt: str) -> ResultFormatter:
    formatter_cls = _formatters.get(fmt)
    if formatter_cls is None:
        raise ValueError(f"不支持的格式: {fmt}（可用: {list(_formatters)}）")
    return formatter_cls()


def write_report(
    recorder: ResultRecorder, output_dir: str,
    *, filename: str = "junit_runner.xml", fmt: str = "junit",
) -> str:
    """序列化记录到 output_dir，返回写出的文件路径"""
    formatter = get_formatter(fmt)
    content = formatter.format(recorder.records, recorder.summary())
    output = Path(output_dir) / filename
    if output.suffix != f".{formatter.extension()}":
        output = output.with_suffix(f".{formatter.extension()}")
    atomic_write(output, content)
    logger.info("报告已保存: %s", output)
    return str(output)
