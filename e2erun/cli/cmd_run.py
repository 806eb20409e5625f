"""CLI — 运行命令"""

from __future__ import annotations

import os
import re
from typing import Any

import click

from e2erun.core.config import DEFAULT_CONFIG_PATH, Config
from e2erun.core.exceptions import ConfigError
from e2erun.core.models import DeploymentType, RunOptions, parse_extract_entry
from e2erun.utils.logger import setup_logging


def register(group: click.Group) -> None:
    group.add_command(run)


class Duration(click.ParamType):
    """时长参数: 纯数字按秒，或 1h30m / 45m / 90s 形式"""

    name = "duration"
    _pattern = re.compile(r"^(?:(\d+(?:\.\d+)?)h)?(?:(\d+(?:\.\d+)?)m)?(?:(\d+(?:\.\d+)?)s)?$")

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> float:
        if isinstance(value, (int, float)):
            return float(value)
        text = str(value).strip()
        try:
            return float(text)
        except ValueError:
            pass
        m = self._pattern.match(text)
        if not text or m is None:
            self.fail(f"无法解析的时长: {value!r}", param, ctx)
        hours, minutes, seconds = (float(g) if g else 0.0 for g in m.groups())
        return hours * 3600 + minutes * 60 + seconds


@click.command()
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_PATH, help="配置文件路径")
@click.option("--build", default="", is_flag=False, flag_value="quick",
              help="构建方式: make / quick / bazel（只写 --build 时为 quick）")
@click.option("--stage", default="", help="构建产物暂存位置")
@click.option("--extract", multiple=True,
              help="获取指令（可多次指定）: release:<版本或URL> / local:<路径> / load:<位置>")
@click.option("--deployment", default=DeploymentType.BASH.value,
              help=f"部署方式: {' / '.join(d.value for d in DeploymentType)}")
@click.option("--up", is_flag=True, help="拉起集群（已存在时先回收）")
@click.option("--down", is_flag=True, help="结束时回收集群")
@click.option("--test", is_flag=True, help="执行测试命令")
@click.option("--federation", is_flag=True, help="同时拉起/回收联邦控制面")
@click.option("--save", default="", help="保存/恢复运行状态的位置")
@click.option("--publish", default="", help="成功后把版本号发布到该位置")
@click.option("--dump", default="", help="报告、元数据与日志的输出目录")
@click.option("--test-args", "--test_args", "test_args", default="", help="传给测试命令的参数")
@click.option("--upgrade-args", "--upgrade_args", "upgrade_args", default="",
              help="升级测试参数（为空时不执行升级测试）")
@click.option("--skew", is_flag=True, help="从 skew 目录（另一版本）执行测试")
@click.option("--check-version-skew/--no-check-version-skew", "check_skew", default=True,
              help="kubectl 与服务端版本不一致时报错")
@click.option("--check-leaked-resources", "check_leaks", is_flag=True,
              help="运行前后比对云资源，发现泄漏时失败")
@click.option("--timeout", default="0", type=Duration(),
              help="测试限时（如 30m），0 表示不限时")
@click.option("--verbose", "-v", is_flag=True, help="输出 DEBUG 日志")
@click.pass_context
def run(
    ctx: click.Context, config_path: str, build: str, stage: str,
    extract: tuple[str, ...], deployment: str, up: bool, down: bool, test: bool,
    federation: bool, save: str, publish: str, dump: str, test_args: str,
    upgrade_args: str, skew: bool, check_skew: bool, check_leaks: bool,
    timeout: float, verbose: bool,
) -> None:
    """编排一次端到端测试运行（构建 → 部署 → 测试 → 回收）"""
    from e2erun.services.orchestrator import Orchestrator

    if verbose:
        setup_logging(level="DEBUG", json_output=os.getenv("E2ERUN_LOG_JSON", "") == "1")

    try:
        cfg = Config.from_file(config_path)
        options = RunOptions(
            build=build, stage=stage,
            extract=tuple(parse_extract_entry(e) for e in extract),
            deployment=deployment, up=up, down=down, test=test,
            federation=federation, save=save, publish=publish, dump=dump,
            test_args=test_args, upgrade_args=upgrade_args,
            skew=skew, check_skew=check_skew, check_leaks=check_leaks,
            timeout=timeout, verbose=verbose,
        )
        options.validate()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    report = Orchestrator(cfg).run(options)
    if report.report_path:
        click.echo(f"报告: {report.report_path}")
    if not report.success:
        click.echo(f"运行失败: {report.error}", err=True)
        ctx.exit(report.exit_code)
    click.echo("运行成功")
