"""构建执行器

按顺序执行 formula 的构建步骤，任一步骤非零退出即中止整个构建。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from srcformula.core.exceptions import BuildError
from srcformula.core.installer.toolchain import search_path, std_args
from srcformula.core.models import BuildStep, Formula
from srcformula.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)


class Builder:
    """构建执行器"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        build_env: dict[str, str] | None = None,
        tool_paths: list[str] | None = None,
    ) -> None:
        self.executor = executor or get_executor()
        self.build_env = build_env or {}
        self.tool_paths = tool_paths or []

    def artifact_path(self, formula: Formula, source_dir: Path, out_dir: Path) -> Path:
        """构建产物位置：使用标准参数时由 -o 指定到 out_dir，否则在源码根目录"""
        if any(s.options.std_args for s in formula.build_steps):
            return out_dir / formula.executable
        return source_dir / formula.executable

    def command_for(self, step: BuildStep, version: str, artifact: Path) -> list[str]:
        args = [step.tool, *step.args]
        if step.options.std_args:
            args.extend(std_args(step.tool, step.options, version, artifact))
        return args

    def _env(self) -> dict[str, str]:
        env = {**os.environ, **self.build_env}
        env["PATH"] = search_path(self.tool_paths)
        return env

    def build(self, formula: Formula, source_dir: Path, out_dir: Path) -> Path:
        """执行全部构建步骤，返回产物路径

        Raises:
            BuildError: 步骤失败（output 为工具的原始输出）或未产出目标文件
        """
        artifact = self.artifact_path(formula, source_dir, out_dir)
        artifact.parent.mkdir(parents=True, exist_ok=True)
        env = self._env()

        for i, step in enumerate(formula.build_steps, 1):
            cmd = self.command_for(step, formula.version, artifact)
            logger.info("  build %d/%d: %s", i, len(formula.build_steps), " ".join(cmd))
            try:
                r = self.executor.execute(cmd, cwd=str(source_dir), env=env, merge_stderr=True)
            except OSError as e:
                raise BuildError(f"无法执行构建工具 {step.tool}: {e}") from e
            if not r.success:
                raise BuildError(
                    f"构建步骤 {i} 失败 (rc={r.returncode}): {' '.join(cmd)}",
                    output=r.output,
                )

        if not artifact.is_file():
            raise BuildError(f"构建完成但未找到产物: {artifact}")
        return artifact
