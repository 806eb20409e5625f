"""e2erun 日志配置

CLI 入口调用 setup_logging 一次；各模块只使用 logging.getLogger(__name__)。
支持人类可读文本和结构化 JSON（CI 流水线消费）两种输出。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s:%(lineno)d: %(message)s"


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器

    每条记录一行:
        {"timestamp": ..., "level": ..., "logger": ..., "message": ...,
         "module": ..., "line": ..., "thread": ..., "exception": ...}
    thread 字段用于区分主流程与信号监听线程。
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
            "thread": record.threadName,
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def resolve_level(verbose: bool = False) -> str:
    """确定日志级别：--verbose 优先，其次 E2ERUN_LOG_LEVEL，默认 INFO"""
    if verbose:
        return "DEBUG"
    return os.getenv("E2ERUN_LOG_LEVEL", "INFO")


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR, CRITICAL）
        json_output: 为 True 时输出 JSON 行，否则输出文本

    说明:
        - 输出到 stderr，stdout 留给被调用的测试命令
        - 重复调用时先清理已有 handlers，避免日志重复
    """
    root = logging.getLogger()
    reset_logging()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)


def reset_logging() -> None:
    """清理根日志器的全部 handlers（测试中重新配置前使用）"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
