"""获取策略: 按顺序处理 ExtractSpec

- release: 下载发布归档并解包到工作目录
- local:   从本地目录（或本地归档）复制
- load:    从 save 位置恢复上一次运行的凭证与版本号，之后的指令不再处理

spec 只在获取阶段可被编排器改写（恢复状态逻辑），改写必须发生在 execute() 之前。
"""

from __future__ import annotations

import logging
import shlex
import shutil
import tarfile
import tempfile
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable

from e2erun.core.config import Config
from e2erun.core.exceptions import E2ERunError, StrategyError
from e2erun.core.models import ExtractEntry, ExtractMode
from e2erun.services.state_store import StateStore
from e2erun.services.strategies.base import Strategy
from e2erun.services.transfer import FileTransfer, is_remote
from e2erun.utils.shell import CommandExecutor, run_cmd

logger = logging.getLogger(__name__)

StateStoreFactory = Callable[[str], StateStore]


def _unpack(archive: Path, dest: Path) -> None:
    with tarfile.open(archive) as tar:
        tar.extractall(dest, filter="data")


class ExtractStrategy(Strategy):
    name = "extract"

    def __init__(
        self, spec: list[ExtractEntry], config: Config, *,
        state_store_factory: StateStoreFactory,
        executor: CommandExecutor | None = None,
        cwd: str = ".",
    ) -> None:
        super().__init__(config, executor=executor, cwd=cwd)
        self.spec = list(spec)
        self._state_store_factory = state_store_factory

    def enabled(self) -> bool:
        return bool(self.spec)

    def execute(self) -> None:
        for entry in self.spec:
            logger.info("获取产物: %s", entry)
            try:
                if entry.mode == ExtractMode.LOAD:
                    self._state_store_factory(entry.locator).load()
                    return
                if entry.mode == ExtractMode.LOCAL:
                    self._extract_local(entry.locator)
                else:
                    self._extract_release(entry.locator)
            except StrategyError:
                raise
            except (OSError, tarfile.TarError, urllib.error.URLError, E2ERunError) as e:
                raise StrategyError(f"获取 {entry} 失败: {e}") from e

    def _extract_local(self, locator: str) -> None:
        src = Path(locator).expanduser()
        dest = Path(self.cwd)
        if src.is_dir():
            if src.resolve() == dest.resolve():
                logger.info("本地目录即工作目录，跳过复制: %s", src)
                return
            shutil.copytree(src, dest, dirs_exist_ok=True, symlinks=True)
        elif src.is_file():
            _unpack(src, dest)
        else:
            raise StrategyError(f"本地路径不存在: {src}")

    def release_url(self, locator: str) -> str:
        if "://" in locator:
            return locator
        return self.config.release_url_template.format(version=locator)

    def _extract_release(self, locator: str) -> None:
        url = self.release_url(locator)
        with tempfile.TemporaryDirectory() as tmp:
            archive = Path(tmp) / (url.rsplit("/", 1)[-1] or "release.tar.gz")
            self._fetch(url, archive)
            _unpack(archive, Path(self.cwd))
        logger.info("发布归档已解包: %s -> %s", url, self.cwd)

    def _fetch(self, url: str, archive: Path) -> None:
        if self.config.release_fetch_command:
            cmd = shlex.split(self.config.release_fetch_command) + [url, str(archive)]
            run_cmd(cmd, executor=self.executor, cwd=self.cwd, label="fetch release")
        elif url.startswith(("http://", "https://")):
            logger.info("  下载: %s", url)
            with urllib.request.urlopen(url, timeout=300) as resp, \
                    open(archive, "wb") as f:  # nosec B310
                shutil.copyfileobj(resp, f)
        elif is_remote(url):
            FileTransfer(
                self.config.remote_copy_command, executor=self.executor,
            ).copy(url, str(archive), label="fetch release")
        else:
            raise StrategyError(f"无法识别的发布位置: {url}")
