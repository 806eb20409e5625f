"""e2erun - 端到端测试运行编排器"""

__version__ = "0.1.0"
