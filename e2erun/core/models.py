"""核心数据模型

RunOptions 在进程启动时由 CLI 构造一次，之后只读；
其余模块统一从此处导入 ExtractEntry / DeploymentType / TestCaseRecord。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from e2erun.core.exceptions import ConfigError

# =========================================================================
# 产物获取
# =========================================================================


class BuildMode(str, Enum):
    """构建方式"""
    MAKE = "make"
    QUICK = "quick"
    BAZEL = "bazel"


class ExtractMode(str, Enum):
    """产物获取方式"""
    RELEASE = "release"  # 发布归档（URL 或版本号）
    LOCAL = "local"      # 本地目录
    LOAD = "load"        # 上一次运行保存的状态


@dataclass(frozen=True)
class ExtractEntry:
    """一条获取指令: (mode, locator)"""

    mode: ExtractMode
    locator: str

    def __str__(self) -> str:
        return f"{self.mode.value}:{self.locator}"


def parse_extract_entry(value: str) -> ExtractEntry:
    """解析命令行中的获取指令

    - ``load:<path>``    → 恢复保存的状态
    - ``local:<path>``   → 本地目录；已存在的目录路径也按本地处理
    - ``release:<loc>`` 或其他任意值 → 发布归档
    """
    value = value.strip()
    if not value:
        raise ConfigError("extract 指令不能为空")
    prefix, sep, rest = value.partition(":")
    if sep and prefix in {m.value for m in ExtractMode} and rest:
        return ExtractEntry(mode=ExtractMode(prefix), locator=rest)
    if os.path.isdir(value):
        return ExtractEntry(mode=ExtractMode.LOCAL, locator=value)
    return ExtractEntry(mode=ExtractMode.RELEASE, locator=value)


# =========================================================================
# 部署
# =========================================================================


class DeploymentType(str, Enum):
    """部署器变体（封闭集合）"""
    NONE = "none"
    BASH = "bash"
    KOPS = "kops"
    KUBERNETES_ANYWHERE = "kubernetes-anywhere"


# =========================================================================
# 运行选项
# =========================================================================


@dataclass(frozen=True)
class RunOptions:
    """单次运行的不可变配置"""

    build: str = ""                  # "" 表示不构建
    stage: str = ""                  # 暂存目标，"" 表示不暂存
    extract: tuple[ExtractEntry, ...] = ()
    deployment: str = DeploymentType.BASH.value
    up: bool = False
    down: bool = False
    test: bool = False
    federation: bool = False
    save: str = ""                   # 保存/恢复状态的位置
    publish: str = ""                # 成功后发布版本号的位置
    dump: str = ""                   # 报告、元数据和日志转储目录
    test_args: str = ""
    upgrade_args: str = ""
    skew: bool = False
    check_skew: bool = True
    check_leaks: bool = False
    timeout: float = 0.0             # 秒，0 表示不限时
    verbose: bool = False

    def validate(self) -> None:
        """校验选项取值，非法时抛 ConfigError"""
        if self.build and self.build not in {m.value for m in BuildMode}:
            raise ConfigError(
                f"不支持的构建方式: {self.build}（可用: "
                f"{[m.value for m in BuildMode]}）"
            )
        if self.timeout < 0:
            raise ConfigError(f"timeout 不能为负数: {self.timeout}")

    @property
    def deployment_is_none(self) -> bool:
        return self.deployment == DeploymentType.NONE.value


# =========================================================================
# 结果记录
# =========================================================================


@dataclass
class TestCaseRecord:
    """单个子操作的计时记录（对应报告中的一个 testcase）"""

    __test__ = False  # 避免被 pytest 当成测试类收集

    name: str
    classname: str = ""
    time: float = 0.0  # 秒
    failure: str = ""

    @property
    def failed(self) -> bool:
        return bool(self.failure)

