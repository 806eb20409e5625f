"""产物获取策略

- base.py: Strategy 抽象基类
- build.py: 构建
- stage.py: 暂存
- extract.py: 获取（发布归档 / 本地目录 / 恢复状态）
"""

from e2erun.services.strategies.base import Strategy
from e2erun.services.strategies.build import BuildStrategy
from e2erun.services.strategies.extract import ExtractStrategy
from e2erun.services.strategies.stage import StageStrategy

__all__ = [
    "Strategy",
    "BuildStrategy",
    "StageStrategy",
    "ExtractStrategy",
]
