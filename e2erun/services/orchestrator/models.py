"""编排器数据模型

- RunContext: 单次运行的可变状态（计时器、记录器、部署器等），只归编排器所有
- RunReport: 返回给调用方的运行结果
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from e2erun.core.clock import CancellationClock
from e2erun.core.exceptions import E2ERunError
from e2erun.core.models import ExtractEntry, RunOptions, TestCaseRecord
from e2erun.core.reporter import ResultRecorder
from e2erun.services.deployers.base import Deployer
from e2erun.services.deployers.federation import FederationControlPlane
from e2erun.services.watcher import TeardownWatcher


@dataclass
class RunContext:
    """单次运行状态"""

    options: RunOptions
    clock: CancellationClock
    recorder: ResultRecorder
    extract_spec: list[ExtractEntry] = field(default_factory=list)
    deployer: Deployer | None = None
    federation: FederationControlPlane | None = None
    watcher: TeardownWatcher | None = None
    resources_before: str | None = None
    resources_after: str | None = None
    finalized: bool = False
    finalize_lock: threading.Lock = field(default_factory=threading.Lock)


@dataclass
class RunReport:
    """编排执行报告"""

    options: RunOptions
    error: E2ERunError | None = None
    records: list[TestCaseRecord] = field(default_factory=list)
    report_path: str = ""
    metadata_path: str = ""

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def record_names(self) -> list[str]:
        return [r.name for r in self.records]
