"""编排器步骤实现 - 10 步流水线

步骤顺序：
1. setup_cancellation - 排空并装配取消计时器
2. prepare - 准备测试环境
3. acquire - 获取测试产物（build → stage → extract）
4. validate_working_directory - 校验工作目录
5. select_deployer - 创建部署器（及联邦控制面）
6. register_watcher - 订阅 ^C 回收（仅 --down）
7. run_body - 部署 + 测试 + 回收
8. persist - 保存运行状态
9. publish - 发布版本号
10. finalize - 写出元数据与报告（由 Orchestrator 在 finally 中执行）
"""

from __future__ import annotations

import difflib
import logging
import os
import shlex
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, MutableMapping

if TYPE_CHECKING:
    from e2erun.services.orchestrator.models import RunContext

from e2erun.core.config import Config
from e2erun.core.exceptions import (
    E2ERunError,
    ResourceLeakError,
    RunInterruptedError,
    RunPhaseError,
)
from e2erun.core.models import ExtractEntry, ExtractMode, RunOptions
from e2erun.core.workspace import validate_working_directory
from e2erun.services.deployers import FederationControlPlane, get_deployer
from e2erun.services.preparer import EnvironmentPreparer
from e2erun.services.publisher import VersionPublisher
from e2erun.services.state_store import StateStore, resolve_kubeconfig
from e2erun.services.strategies import (
    BuildStrategy,
    ExtractStrategy,
    StageStrategy,
    Strategy,
)
from e2erun.services.transfer import FileTransfer
from e2erun.services.watcher import TeardownWatcher
from e2erun.utils.shell import CommandExecutor, LocalExecutor, output, run_cmd

logger = logging.getLogger(__name__)


# =========================================================================
# 纯决策函数
# =========================================================================


def plan_extract(
    options: RunOptions, spec: list[ExtractEntry],
) -> tuple[list[ExtractEntry], bool]:
    """获取指令改写

    返回 (改写后的指令, 是否只恢复 kubeconfig):
    - 配置了 save 且不 --up: 整体替换为一条 load 指令，恢复凭证与版本
    - 配置了 save 且只拉起联邦控制面（federation + up + deployment=none）:
      指令不变，只额外恢复 kubeconfig
    """
    if not options.save:
        return list(spec), False
    if not options.up:
        return [ExtractEntry(mode=ExtractMode.LOAD, locator=options.save)], False
    if options.federation and options.deployment_is_none:
        return list(spec), True
    return list(spec), False


def should_persist(options: RunOptions) -> bool:
    """拉起集群后未回收，或只拉起了联邦控制面时保存状态"""
    if not options.save:
        return False
    upped_not_downed = options.up and not options.down
    federation_only = options.federation and options.up and options.deployment_is_none
    return upped_not_downed or federation_only


def _as_run_error(name: str, e: Exception) -> E2ERunError:
    """子步骤的意外异常（如 OSError）统一成 E2ERunError 收集"""
    if isinstance(e, E2ERunError):
        return e
    logger.error("%s 出现意外异常: %r", name, e)
    err = E2ERunError(f"{name} 失败: {e}")
    err.__cause__ = e
    return err


class OrchestrationSteps:
    """编排步骤集合"""

    def __init__(
        self, config: Config, *,
        executor: CommandExecutor | None = None,
        cwd: str = ".",
        environ: MutableMapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self.executor = executor or LocalExecutor()
        self.cwd = cwd
        self.environ = os.environ if environ is None else environ

    @property
    def transfer(self) -> FileTransfer:
        return FileTransfer(self.config.remote_copy_command, executor=self.executor)

    def state_store(self, location: str) -> StateStore:
        return StateStore(
            location,
            kubeconfig=resolve_kubeconfig(self.config.kubeconfig_path, self.environ),
            transfer=self.transfer,
            version_file=self.config.version_file,
            cwd=self.cwd,
        )

    # =====================================================================
    # 步骤 1-6
    # =====================================================================

    def setup_cancellation(self, ctx: RunContext) -> None:
        """步骤1: 校验选项，排空计时器，按 timeout 装配 interrupt"""
        ctx.options.validate()
        ctx.clock.setup(ctx.options.timeout)

    def prepare(self, ctx: RunContext) -> None:
        """步骤2: 云厂商准备、产物目录、PATH"""
        EnvironmentPreparer(
            self.config, executor=self.executor, environ=self.environ, cwd=self.cwd,
        ).prepare()
        logger.info("[Step 2] 测试环境已准备")

    def acquire(self, ctx: RunContext) -> None:
        """步骤3: 依次执行启用的 build / stage / extract 策略，每个策略单独计时"""
        o = ctx.options
        ctx.extract_spec, restore_kubeconfig = plan_extract(o, list(o.extract))
        if ctx.extract_spec != list(o.extract):
            logger.info("改写获取指令，从 %s 恢复 kubeconfig 与版本号", o.save)
        if restore_kubeconfig:
            # 在计时的 extract 记录之外恢复
            logger.info("只拉起联邦控制面，从 %s 恢复 kubeconfig", o.save)
            self.state_store(o.save).load_kubeconfig()

        extract = ExtractStrategy(
            ctx.extract_spec, self.config,
            state_store_factory=self.state_store,
            executor=self.executor, cwd=self.cwd,
        )
        strategies: list[Strategy] = [
            BuildStrategy(o.build, self.config, executor=self.executor, cwd=self.cwd),
            StageStrategy(o.stage, self.config, executor=self.executor, cwd=self.cwd),
            extract,
        ]
        for strategy in strategies:
            if strategy.enabled():
                ctx.recorder.wrap(strategy.name, strategy.execute)

    def validate_working_directory(self, ctx: RunContext) -> None:
        """步骤4"""
        validate_working_directory(self.config.project_dir_marker, cwd=self.cwd)

    def select_deployer(self, ctx: RunContext) -> None:
        """步骤5: 部署器名称不在封闭集合内时抛 ConfigError"""
        ctx.deployer = get_deployer(
            ctx.options.deployment, self.config,
            executor=self.executor, cwd=self.cwd, environ=self.environ,
        )
        if ctx.options.federation:
            ctx.federation = FederationControlPlane(
                self.config, executor=self.executor, cwd=self.cwd, environ=self.environ,
            )

    def register_watcher(self, ctx: RunContext, on_failure: Callable[[], None]) -> None:
        """步骤6: 仅在 --down 时订阅 ^C"""
        if not ctx.options.down or ctx.deployer is None:
            return
        watcher = TeardownWatcher(
            ctx.deployer, on_failure=on_failure, federation=ctx.federation,
        )
        try:
            watcher.start()
        except ValueError as e:
            # signal.signal 只能在主线程调用
            logger.warning("无法订阅中断信号，^C 时不会自动回收: %s", e)
            return
        ctx.watcher = watcher

    def stop_watcher(self, ctx: RunContext) -> None:
        if ctx.watcher is not None:
            ctx.watcher.stop()
            ctx.watcher = None

    # =====================================================================
    # 步骤 7: 运行主体
    # =====================================================================

    def run_body(self, ctx: RunContext) -> None:
        """步骤7: 部署、测试、回收

        第一个失败之后不再执行后续非清理步骤；计时器触发后同样跳过。
        清理步骤（日志转储、联邦回收、集群回收、泄漏检查）总会尝试。
        """
        o = ctx.options
        deployer = ctx.deployer
        if deployer is None:
            raise E2ERunError("运行主体缺少部署器")
        errors: list[Exception] = []

        def step(name: str, func: Callable[[], Any]) -> None:
            if errors:
                return
            if ctx.clock.interrupted:
                errors.append(RunInterruptedError(f"测试超时，跳过 {name} 及之后的步骤"))
                return
            try:
                ctx.recorder.wrap(name, func)
            except Exception as e:  # noqa: BLE001
                errors.append(_as_run_error(name, e))

        def cleanup(name: str, func: Callable[[], Any]) -> None:
            try:
                ctx.recorder.wrap(name, func)
            except Exception as e:  # noqa: BLE001  其余清理步骤照常执行
                errors.append(_as_run_error(name, e))

        try:
            if o.check_leaks:
                step("list_resources_before", lambda: self._list_resources(ctx, "before"))
            if o.up:
                step("bring_up", deployer.bring_up)
                if o.federation and ctx.federation is not None:
                    step("federation_up", ctx.federation.up)
            if o.up or o.test:
                step("is_up", deployer.is_up)
                step("install_access_credentials", deployer.install_access_credentials)
            if o.upgrade_args:
                step("upgrade_test", lambda: self._upgrade_test(o))
            if o.test:
                step("run_tests", lambda: self._run_tests(o))
        finally:
            if o.dump and errors:
                cleanup("dump_cluster_logs", lambda: self._dump_logs(o.dump))
            if o.down:
                if o.federation and ctx.federation is not None:
                    cleanup("federation_tear_down", ctx.federation.down)
                cleanup("tear_down", deployer.tear_down)
            if o.check_leaks and ctx.resources_before is not None:
                cleanup("list_resources_after", lambda: self._list_resources(ctx, "after"))
                if ctx.resources_after is not None:
                    cleanup("diff_resources", lambda: self._diff_resources(ctx))

        if not errors:
            return
        if len(errors) == 1 and isinstance(errors[0], RunInterruptedError):
            raise errors[0]
        raise RunPhaseError(errors)

    def _test_env(self, o: RunOptions) -> dict[str, str]:
        kubectl = self.config.kubectl_command
        if o.check_skew:
            kubectl += " --match-server-version"
        return {**self.environ, "KUBECTL": kubectl}

    def _test_cwd(self, o: RunOptions) -> str:
        if o.skew:
            return str(Path(self.cwd) / self.config.skew_dir)
        return self.cwd

    def _run_tests(self, o: RunOptions) -> None:
        cmd = shlex.split(self.config.test_command) + shlex.split(o.test_args)
        if not o.check_skew:
            cmd.append("--check-version-skew=false")
        run_cmd(
            cmd, executor=self.executor, cwd=self._test_cwd(o),
            env=self._test_env(o), label="run_tests",
        )

    def _upgrade_test(self, o: RunOptions) -> None:
        # 升级测试总是从 skew 目录（旧版本）发起
        cmd = shlex.split(self.config.test_command) + shlex.split(o.upgrade_args)
        if not o.check_skew:
            cmd.append("--check-version-skew=false")
        run_cmd(
            cmd, executor=self.executor,
            cwd=str(Path(self.cwd) / self.config.skew_dir),
            env=self._test_env(o), label="upgrade_test",
        )

    def _dump_logs(self, dump: str) -> None:
        cmd = shlex.split(self.config.dump_command) + [dump]
        run_cmd(cmd, executor=self.executor, cwd=self.cwd, label="dump_cluster_logs")

    def _list_resources(self, ctx: RunContext, when: str) -> None:
        out = output(
            shlex.split(self.config.list_resources_command),
            executor=self.executor, cwd=self.cwd, label=f"list_resources[{when}]",
        )
        if when == "before":
            ctx.resources_before = out
        else:
            ctx.resources_after = out
        if ctx.options.dump:
            path = Path(ctx.options.dump) / f"gcp-resources-{when}.txt"
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(out, encoding="utf-8")
            except OSError as e:
                raise E2ERunError(f"写入资源清单失败: {path}: {e}") from e

    def _diff_resources(self, ctx: RunContext) -> None:
        before = (ctx.resources_before or "").splitlines()
        after = (ctx.resources_after or "").splitlines()
        diff = list(difflib.unified_diff(before, after, "before", "after", lineterm=""))
        leaked = [
            line[1:] for line in diff
            if line.startswith("+") and not line.startswith("+++")
        ]
        if ctx.options.dump and diff:
            path = Path(ctx.options.dump) / "gcp-resources-diff.txt"
            try:
                path.write_text("\n".join(diff) + "\n", encoding="utf-8")
            except OSError as e:
                logger.warning("写入资源差异失败: %s", e)
        if leaked:
            raise ResourceLeakError(
                f"发现 {len(leaked)} 个泄漏资源:\n" + "\n".join(leaked)
            )

    # =====================================================================
    # 步骤 8-9
    # =====================================================================

    def persist(self, ctx: RunContext) -> None:
        """步骤8"""
        if not should_persist(ctx.options):
            return
        self.state_store(ctx.options.save).save()
        logger.info("[Step 8] 运行状态已保存到 %s", ctx.options.save)

    def publish(self, ctx: RunContext) -> None:
        """步骤9"""
        if not ctx.options.publish:
            return
        publisher = VersionPublisher(
            self.transfer, Path(self.cwd) / self.config.version_file,
        )
        version = publisher.publish(ctx.options.publish)
        logger.info("[Step 9] 已发布版本 %s", version)

