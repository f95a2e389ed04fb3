"""子进程执行工具

通过 CommandExecutor 协议抽象子进程执行：构建与冒烟测试都经由执行器调用，
测试时注入假实现即可，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）

    merge_stderr=True 执行时 stderr 已并入 stdout，stderr 为空串。
    """

    args: list[str]
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout + stderr 原样拼接"""
        return self.stdout + self.stderr


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 — 抽象子进程调用"""

    def execute(
        self,
        args: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        merge_stderr: bool = False,
    ) -> CommandResult:
        """执行命令并返回结果，非零退出码不抛异常"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）

    只接受参数列表，不经过 shell，避免 formula 字段被当作 shell 片段解释。
    """

    def execute(
        self,
        args: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        merge_stderr: bool = False,
    ) -> CommandResult:
        logger.debug("exec: %s (cwd=%s)", args, cwd)
        r = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            text=True, errors="replace",
            cwd=cwd, env=env, check=False,
        )
        return CommandResult(
            args=list(args),
            returncode=r.returncode,
            stdout=r.stdout or "",
            stderr=r.stderr or "",
        )


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试或远程执行场景）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor
