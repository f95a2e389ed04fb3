"""YAML 文件统一读取

配置文件与 formula 文件都经由此处解析：统一 encoding="utf-8"、
大小上限、空值保护和错误类型。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from srcformula.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# formula / 配置文件都很小，超过 1MB 视为误用
MAX_YAML_SIZE = 1024 * 1024


def load_yaml(path: str | Path, *, required: bool = False) -> dict[str, Any]:
    """安全读取 YAML 文件

    参数:
        path: YAML 文件路径
        required: 为 True 时文件缺失、为空或顶层不是映射都抛 ConfigError；
            为 False 时这些情况返回空字典

    异常:
        ConfigError: YAML 语法错误、文件过大、读取失败，或 required 下内容无效
    """
    p = Path(path)
    if not p.exists():
        if required:
            raise ConfigError(f"文件不存在: {p}")
        return {}

    file_size = p.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ConfigError(
            f"YAML 文件过大: {p} ({file_size} 字节), 超过限制 {MAX_YAML_SIZE} 字节"
        )

    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"解析 YAML 文件失败: {p}: {e}") from e
    except OSError as e:
        raise ConfigError(f"读取文件失败: {p}: {e}") from e

    if result is None:
        if required:
            raise ConfigError(f"文件为空: {p}")
        return {}
    if not isinstance(result, dict):
        if required:
            raise ConfigError(
                f"{p} 顶层必须是映射 (实际类型: {type(result).__name__})"
            )
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，忽略", p, type(result).__name__,
        )
        return {}
    return result
