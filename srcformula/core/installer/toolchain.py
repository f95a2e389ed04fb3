"""构建工具链

职责:
- 检查构建依赖工具是否可用（只检查，不安装）
- 为支持的工具生成标准构建参数（输出路径、ldflags 等）
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable
from pathlib import Path

from srcformula.core.exceptions import MissingDependencyError
from srcformula.core.models import BuildOptions

logger = logging.getLogger(__name__)


def go_std_args(options: BuildOptions, version: str, output: Path) -> list[str]:
    """go build 标准参数"""
    args: list[str] = []
    if options.trimpath:
        args.append("-trimpath")
    args.append(f"-o={output}")
    if options.tags:
        args.append(f"-tags={' '.join(options.tags)}")
    ldflags = options.rendered_ldflags(version)
    if ldflags:
        args.append(f"-ldflags={ldflags}")
    return args


StdArgsFactory = Callable[[BuildOptions, str, Path], list[str]]

# 工具名 → 标准参数生成函数
STD_ARGS: dict[str, StdArgsFactory] = {
    "go": go_std_args,
}


def supports_std_args(tool: str) -> bool:
    return tool in STD_ARGS


def std_args(tool: str, options: BuildOptions, version: str, output: Path) -> list[str]:
    return STD_ARGS[tool](options, version, output)


def search_path(extra_paths: list[str] | None = None) -> str:
    """构建工具搜索路径：额外目录优先，其次进程 PATH"""
    parts = list(extra_paths or [])
    parts.append(os.environ.get("PATH", os.defpath))
    return os.pathsep.join(p for p in parts if p)


def find_tool(tool: str, extra_paths: list[str] | None = None) -> str | None:
    return shutil.which(tool, path=search_path(extra_paths))


def ensure_dependencies(
    tools: tuple[str, ...] | list[str],
    extra_paths: list[str] | None = None,
) -> dict[str, str]:
    """确认每个构建依赖工具都可执行，返回 {工具名: 绝对路径}

    Raises:
        MissingDependencyError: 列出所有缺失的工具
    """
    found: dict[str, str] = {}
    missing: list[str] = []
    for tool in tools:
        path = find_tool(tool, extra_paths)
        if path is None:
            missing.append(tool)
        else:
            found[tool] = path
    if missing:
        raise MissingDependencyError(
            f"缺少构建依赖: {', '.join(missing)}（请先通过系统包管理器安装）",
            missing=missing,
        )
    for tool, path in found.items():
        logger.info("  构建依赖就绪: %s -> %s", tool, path)
    return found
