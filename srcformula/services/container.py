"""服务容器 — 由 Config 装配仓库、流水线与服务

CLI 和 Web 层均通过 get_container() 获取服务，同一容器内实例共享。

用法:
    svc = get_container().installer

    cfg = Config.from_file("my_config.yml")
    svc = ServiceContainer(config=cfg).installer
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from srcformula.core.config import Config
    from srcformula.core.installer.pipeline import InstallPipeline
    from srcformula.core.repository import FormulaRepository
    from srcformula.services.install_service import InstallService
    from srcformula.utils.shell import CommandExecutor


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from srcformula.core.config import get_config
            config = get_config()
        self._config = config
        self._executor = executor

    @property
    def config(self) -> Config:
        return self._config

    @property
    def repository(self) -> FormulaRepository:
        if "repository" not in self._instances:
            from srcformula.core.repository import FormulaRepository
            self._instances["repository"] = FormulaRepository(self._config.formula_dir)
        return self._instances["repository"]  # type: ignore[return-value]

    @property
    def pipeline(self) -> InstallPipeline:
        if "pipeline" not in self._instances:
            from srcformula.core.installer.pipeline import InstallPipeline
            self._instances["pipeline"] = InstallPipeline(
                cache_dir=Path(self._config.cache_dir),
                install_root=Path(self._config.install_root),
                executor=self._executor,
                build_env=self._config.build_env,
                tool_paths=self._config.tool_paths,
            )
        return self._instances["pipeline"]  # type: ignore[return-value]

    @property
    def installer(self) -> InstallService:
        if "installer" not in self._instances:
            from srcformula.services.install_service import InstallService
            self._instances["installer"] = InstallService(
                self.repository, self.pipeline, overwrite=self._config.overwrite,
            )
        return self._instances["installer"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（配置切换或测试时使用）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
