"""集中配置管理

支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from srcformula.core.exceptions import ConfigError
from srcformula.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "configs/default.yml"


@dataclass
class Config:
    """全局配置"""

    # 目录
    formula_dir: str = "formulas"
    cache_dir: str = "var/cache"
    install_root: str = "var/cellar"

    # 构建
    build_env: dict[str, str] = field(default_factory=dict)  # 追加到构建进程的环境变量
    tool_paths: list[str] = field(default_factory=list)      # 额外的构建工具搜索目录

    # 安装
    overwrite: bool = True

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        if not isinstance(matched.get("build_env", {}), dict):
            raise ConfigError(f"{path}: build_env 必须是映射")
        if not isinstance(matched.get("tool_paths", []), list):
            raise ConfigError(f"{path}: tool_paths 必须是列表")
        cfg = cls(**matched)
        cfg.build_env = {str(k): str(v) for k, v in cfg.build_env.items()}
        cfg.tool_paths = [str(p) for p in cfg.tool_paths]
        cfg.extra = extra
        return cfg

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI / Web 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_FILE) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
