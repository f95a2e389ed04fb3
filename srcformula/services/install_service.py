"""安装服务 - CLI 与 Web 共用的入口

按名称从 formula 仓库取描述，交给 InstallPipeline 执行。
同一进程内同名 formula 的安装/测试串行执行；跨进程互斥由外部负责。
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

from srcformula.core.installer.pipeline import InstallPipeline
from srcformula.core.models import Formula, InstallReport
from srcformula.core.repository import FormulaRepository

logger = logging.getLogger(__name__)


class InstallService:
    """formula 安装服务"""

    def __init__(
        self,
        repository: FormulaRepository,
        pipeline: InstallPipeline,
        *,
        overwrite: bool = True,
    ) -> None:
        self.repository = repository
        self.pipeline = pipeline
        self.overwrite = overwrite
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock(self, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(name, threading.Lock())

    def get(self, name: str) -> Formula:
        return self.repository.get(name)

    def list_all(self) -> list[dict[str, Any]]:
        """列出全部 formula 及安装状态"""
        items = []
        for f in self.repository.list_all():
            items.append({
                "name": f.name,
                "version": f.version,
                "description": f.description,
                "installed": self.installed_path(f) is not None,
            })
        return items

    def installed_path(self, formula: Formula) -> Path | None:
        path = self.pipeline.cellar.executable(formula)
        return path if path.is_file() else None

    def info(self, name: str) -> dict[str, Any]:
        formula = self.get(name)
        data = formula.to_dict()
        installed = self.installed_path(formula)
        data["installed_path"] = str(installed) if installed else ""
        return data

    def fetch(self, name: str, *, force: bool = False) -> Path:
        """下载并校验归档，失败直接抛 InstallerError"""
        formula = self.get(name)
        with self._lock(name):
            return self.pipeline.fetch(formula, force=force)

    def install(
        self,
        name: str,
        *,
        force_fetch: bool = False,
        run_test: bool = False,
        overwrite: bool | None = None,
    ) -> InstallReport:
        formula = self.get(name)
        with self._lock(name):
            return self.pipeline.install(
                formula,
                force_fetch=force_fetch,
                run_test=run_test,
                overwrite=self.overwrite if overwrite is None else overwrite,
            )

    def test(self, name: str) -> InstallReport:
        formula = self.get(name)
        with self._lock(name):
            return self.pipeline.test(formula)

    def audit(self) -> dict[str, list[str]]:
        return self.repository.audit()
