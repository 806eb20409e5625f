"""e2erun 命令行接口

CLI 按命令拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os

import click

from e2erun import __version__
from e2erun.utils.logger import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="输出 DEBUG 日志（含子进程输出）")
def main(verbose: bool) -> None:
    """e2erun - 端到端测试运行编排器"""
    setup_logging(
        level=resolve_level(verbose),
        json_output=os.getenv("E2ERUN_LOG_JSON", "") == "1",
    )


# 注册各子命令
from e2erun.cli.cmd_misc import register as _reg_misc  # noqa: E402
from e2erun.cli.cmd_run import register as _reg_run  # noqa: E402

_reg_run(main)
_reg_misc(main)
