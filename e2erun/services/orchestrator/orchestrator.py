"""执行编排器 - 协调 10 步流水线

职责：
- 按固定顺序执行各阶段，阶段之间检查超时计时器
- 阶段失败包装为带阶段前缀的 PhaseError，中止后续阶段
- finally 中保证 finalize 恰好执行一次（与 ^C 回收失败的退出路径共享）
"""

from __future__ import annotations

import logging
import os
from typing import Callable, MutableMapping

from e2erun.core.clock import CancellationClock
from e2erun.core.config import Config
from e2erun.core.exceptions import (
    E2ERunError,
    PhaseError,
    RunInterruptedError,
    RunPhaseError,
)
from e2erun.core.metadata import build_metadata, find_version, write_metadata
from e2erun.core.models import RunOptions
from e2erun.core.reporter import ResultRecorder, write_report
from e2erun.services.orchestrator.models import RunContext, RunReport
from e2erun.services.orchestrator.steps import OrchestrationSteps
from e2erun.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)


class Orchestrator:
    """10 步执行编排器（try/finally 保证 finalize）

    计时器、配置和记录器都归单次 run() 所有，同一进程内可以连续编排多次。
    """

    def __init__(
        self,
        config: Config | None = None, *,
        executor: CommandExecutor | None = None,
        cwd: str | None = None,
        environ: MutableMapping[str, str] | None = None,
        exit_func: Callable[[int], None] = os._exit,
    ) -> None:
        self.config = config or Config()
        self.executor = executor or LocalExecutor()
        self.cwd = cwd or os.getcwd()
        self.environ = os.environ if environ is None else environ
        self._exit = exit_func
        self.steps = OrchestrationSteps(
            self.config, executor=self.executor, cwd=self.cwd, environ=self.environ,
        )

    def run(self, options: RunOptions) -> RunReport:
        """执行编排流程，业务错误记录在 report.error 中而不是抛出"""
        ctx = RunContext(
            options=options,
            clock=CancellationClock(),
            recorder=ResultRecorder(self.config.report_classname),
        )
        report = RunReport(options=options)

        try:
            self.steps.setup_cancellation(ctx)
            self._phase(ctx, "准备测试环境失败", self.steps.prepare)
            self._phase(ctx, "获取测试产物失败", self.steps.acquire)
            self._phase(ctx, "工作目录无效", self.steps.validate_working_directory)
            self._phase(ctx, "创建部署器失败", self.steps.select_deployer)
            self.steps.register_watcher(ctx, lambda: self._fatal_exit(ctx, report))
            self._phase(ctx, "运行失败", self.steps.run_body)
            # 集群已启动且不回收时，超时也要保存凭证，否则后续运行无法接管
            self._phase(ctx, "保存运行状态失败", self.steps.persist, interruptible=False)
            self._phase(ctx, "发布版本失败", self.steps.publish)
        except E2ERunError as e:
            report.error = e
            logger.error("编排失败: %s", e)
        finally:
            self.steps.stop_watcher(ctx)
            ctx.clock.stop()
            self.finalize(ctx, report)

        if report.success:
            logger.info("编排完成: %d 个步骤全部成功", len(report.records))
        return report

    def _phase(
        self, ctx: RunContext, label: str, func: Callable[[RunContext], None],
        *, interruptible: bool = True,
    ) -> None:
        if interruptible and ctx.clock.interrupted:
            raise RunInterruptedError(f"测试超时，在“{label.removesuffix('失败')}”之前中止")
        try:
            func(ctx)
        except (PhaseError, RunPhaseError, RunInterruptedError):
            raise
        except Exception as e:  # noqa: BLE001  意外异常同样带阶段前缀
            raise PhaseError(label, e) from e

    def finalize(self, ctx: RunContext, report: RunReport) -> None:
        """写出元数据与报告；主流程和 ^C 退出路径都会调用，只生效一次"""
        with ctx.finalize_lock:
            if ctx.finalized:
                return
            ctx.finalized = True
            report.records = ctx.recorder.records
            dump = ctx.options.dump
            if not dump:
                return
            try:
                version = find_version(
                    version_file=self.config.version_file,
                    version_script=self.config.version_script,
                    executor=self.executor, cwd=self.cwd,
                )
                metadata = build_metadata(
                    version, self.environ, prefix=self.config.metadata_env_prefix,
                )
                report.metadata_path = write_metadata(
                    dump, metadata, filename=self.config.metadata_file,
                )
                report.report_path = write_report(
                    ctx.recorder, dump,
                    filename=self.config.report_file, fmt=self.config.report_format,
                )
            except (OSError, ValueError) as e:
                logger.error("写出报告失败: %s", e)
                if report.error is None:
                    report.error = E2ERunError(f"写出报告失败: {e}")

    def _fatal_exit(self, ctx: RunContext, report: RunReport) -> None:
        """^C 回收失败: 写出报告后立即以状态码 1 退出，不恢复被中断的运行"""
        if report.error is None:
            report.error = E2ERunError("中断后回收失败")
        self.finalize(ctx, report)
        logger.critical("中断后回收失败，退出")
        self._exit(1)
