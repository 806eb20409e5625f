"""统一异常体系

所有业务异常继承 E2ERunError，CLI 层捕获后以非零状态码退出。
配置类错误在任何集群操作之前抛出；阶段类错误中止后续阶段，但报告仍会写出。
"""

from __future__ import annotations


class E2ERunError(Exception):
    """基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(E2ERunError):
    """配置无效（未知部署器名称、非法选项值、配置文件格式错误）"""

    code = "CONFIG_ERROR"


class InvalidWorkingDirectoryError(ConfigError):
    """当前目录不是被测项目根目录"""

    code = "INVALID_WORKING_DIRECTORY"


class ExecutionError(E2ERunError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class ClockError(E2ERunError):
    """计时器状态错误（未排空即重新装配）"""

    code = "CLOCK_ERROR"


class StrategyError(E2ERunError):
    """build / stage / extract 策略执行失败"""

    code = "STRATEGY_ERROR"


class DeployerError(E2ERunError):
    """部署器生命周期操作失败"""

    code = "DEPLOYER_ERROR"


class StateError(E2ERunError):
    """运行状态保存或恢复失败"""

    code = "STATE_ERROR"


class PublishError(E2ERunError):
    """版本发布失败"""

    code = "PUBLISH_ERROR"


class PhaseError(E2ERunError):
    """编排阶段失败，message 带阶段前缀，cause 保留原始异常"""

    code = "PHASE_ERROR"

    def __init__(self, phase: str, cause: BaseException) -> None:
        super().__init__(f"{phase}: {cause}")
        self.phase = phase
        self.cause = cause


class RunPhaseError(E2ERunError):
    """运行主体（部署 + 测试 + 回收）中出现一个或多个失败"""

    code = "RUN_FAILED"

    def __init__(self, errors: list[Exception]) -> None:
        joined = "; ".join(str(e) for e in errors)
        super().__init__(f"运行阶段出现 {len(errors)} 个错误: {joined}")
        self.errors = errors


class RunInterruptedError(E2ERunError):
    """超时计时器已触发，剩余非清理步骤被跳过"""

    code = "INTERRUPTED"


class ResourceLeakError(E2ERunError):
    """运行结束后存在运行开始前没有的云资源"""

    code = "RESOURCE_LEAK"
