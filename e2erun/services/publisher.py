"""版本发布 — 测试通过后把 version 文件复制到发布位置"""

from __future__ import annotations

import logging
from pathlib import Path

from e2erun.core.exceptions import E2ERunError, PublishError
from e2erun.services.transfer import FileTransfer

logger = logging.getLogger(__name__)


class VersionPublisher:
    def __init__(self, transfer: FileTransfer, version_file: Path) -> None:
        self.transfer = transfer
        self.version_file = version_file

    def publish(self, destination: str) -> str:
        """返回发布的版本号"""
        try:
            version = self.version_file.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise PublishError(f"读取版本文件失败: {e}") from e
        logger.info("设置 %s 版本为 %s", destination, version)
        try:
            self.transfer.copy(str(self.version_file), destination, label="publish")
        except (OSError, E2ERunError) as e:
            raise PublishError(f"发布版本到 {destination} 失败: {e}") from e
        return version
