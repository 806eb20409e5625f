"""CLI — 杂项命令（版本、配置查看）"""

from __future__ import annotations

import click

from e2erun import __version__
from e2erun.core.config import DEFAULT_CONFIG_PATH, Config
from e2erun.core.exceptions import ConfigError
from e2erun.utils.yaml_io import dump_yaml


def register(group: click.Group) -> None:
    group.add_command(version)
    group.add_command(show_config)


@click.command()
def version() -> None:
    """显示 e2erun 版本"""
    click.echo(__version__)


@click.command(name="config")
@click.option("--config", "-c", "config_path", default=DEFAULT_CONFIG_PATH, help="配置文件路径")
def show_config(config_path: str) -> None:
    """显示合并默认值后的生效配置"""
    try:
        cfg = Config.from_file(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    click.echo(dump_yaml(cfg.to_dict()), nl=False)
