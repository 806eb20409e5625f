"""执行编排器模块

- models.py: RunContext / RunReport
- steps.py: 10 步流水线的各阶段实现
- orchestrator.py: 协调器（阶段顺序、超时检查、finalize 一次性保证）
"""

from e2erun.services.orchestrator.models import RunContext, RunReport
from e2erun.services.orchestrator.orchestrator import Orchestrator
from e2erun.services.orchestrator.steps import (
    OrchestrationSteps,
    plan_extract,
    should_persist,
)

__all__ = [
    "RunContext",
    "RunReport",
    "Orchestrator",
    "OrchestrationSteps",
    "plan_extract",
    "should_persist",
]
