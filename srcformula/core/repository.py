"""Formula 仓库

formula 目录下每个 <name>.yml（或 .yaml）描述一个包，文件名必须与 name 一致，
同一仓库内 name 唯一。
"""

from __future__ import annotations

import logging
from pathlib import Path

from srcformula.core.exceptions import (
    ConfigError,
    FormulaNotFoundError,
    ValidationError,
)
from srcformula.core.loader import load_formula
from srcformula.core.models import Formula

logger = logging.getLogger(__name__)

FORMULA_SUFFIXES = (".yml", ".yaml")


class FormulaRepository:
    """基于目录的 formula 仓库"""

    def __init__(self, formula_dir: str | Path) -> None:
        self.formula_dir = Path(formula_dir)
        # path -> (mtime_ns, Formula)，文件修改后自动重新加载
        self._cache: dict[Path, tuple[int, Formula]] = {}

    def _paths(self) -> dict[str, Path]:
        if not self.formula_dir.is_dir():
            logger.warning("formula 目录不存在: %s", self.formula_dir)
            return {}
        paths: dict[str, Path] = {}
        for p in sorted(self.formula_dir.iterdir()):
            if p.suffix not in FORMULA_SUFFIXES or not p.is_file():
                continue
            if p.stem in paths:
                raise ValidationError(
                    f"formula 重名: {paths[p.stem].name} 与 {p.name}",
                )
            paths[p.stem] = p
        return paths

    def _load(self, path: Path) -> Formula:
        mtime = path.stat().st_mtime_ns
        cached = self._cache.get(path)
        if cached is not None and cached[0] == mtime:
            return cached[1]
        formula = load_formula(path)
        if formula.name != path.stem:
            raise ValidationError(
                f"formula 无效: {path}",
                details=[f"name '{formula.name}' 与文件名 '{path.stem}' 不一致"],
            )
        self._cache[path] = (mtime, formula)
        return formula

    def names(self) -> list[str]:
        return list(self._paths())

    def exists(self, name: str) -> bool:
        return name in self._paths()

    def get(self, name: str) -> Formula:
        """按名称加载 formula

        Raises:
            FormulaNotFoundError: 不存在
            ValidationError / ConfigError: 文件内容无效
        """
        path = self._paths().get(name)
        if path is None:
            raise FormulaNotFoundError(
                f"formula '{name}' 不存在于 {self.formula_dir}",
            )
        return self._load(path)

    def list_all(self) -> list[Formula]:
        return [self._load(p) for p in self._paths().values()]

    def audit(self) -> dict[str, list[str]]:
        """校验仓库内全部 formula，返回 {文件名: [问题]}（无问题的文件不出现）"""
        problems: dict[str, list[str]] = {}
        for path in self._paths().values():
            try:
                self._load(path)
            except ValidationError as e:
                problems[path.name] = e.details or [str(e)]
            except ConfigError as e:
                problems[path.name] = [str(e)]
        return problems
