"""产物安装

安装位置: <install_root>/<name>/<version>/bin/<可执行文件名>
先复制到同目录临时文件再原子 rename，失败时清理临时文件和本次新建的目录，
保证失败不会留下半成品。
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from srcformula.core.exceptions import InstallError
from srcformula.core.models import Formula

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755


class Cellar:
    """安装根目录布局"""

    def __init__(self, install_root: Path) -> None:
        self.install_root = install_root

    def keg(self, formula: Formula) -> Path:
        return self.install_root / formula.name / formula.version

    def bin_dir(self, formula: Formula) -> Path:
        return self.keg(formula) / "bin"

    def executable(self, formula: Formula) -> Path:
        return self.bin_dir(formula) / formula.executable


def _missing_parents(path: Path) -> list[Path]:
    """path 及其祖先中尚不存在的目录（由深到浅）"""
    missing: list[Path] = []
    current = path
    while not current.exists() and current != current.parent:
        missing.append(current)
        current = current.parent
    return missing


def _remove_created(dirs: list[Path]) -> None:
    for d in dirs:
        try:
            d.rmdir()
        except OSError as e:
            logger.warning("  清理目录失败 %s: %s", d, e)


def place_artifact(
    artifact: Path, bin_dir: Path, name: str, *, overwrite: bool = True,
) -> Path:
    """把构建产物放到 bin_dir/name，返回安装路径

    Raises:
        InstallError: 目录不可写、目标被目录/链接等占用、或禁止覆盖时目标已存在
    """
    target = bin_dir / name
    if target.is_symlink() or (target.exists() and not target.is_file()):
        raise InstallError(f"安装目标被占用且不可覆盖: {target}")
    if target.exists() and not overwrite:
        raise InstallError(f"安装目标已存在（禁止覆盖）: {target}")

    created = _missing_parents(bin_dir)
    try:
        bin_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        _remove_created(created)
        raise InstallError(f"无法创建安装目录 {bin_dir}: {e}") from e
    if not os.access(bin_dir, os.W_OK):
        raise InstallError(f"安装目录不可写: {bin_dir}")

    tmp = ""
    try:
        fd, tmp = tempfile.mkstemp(dir=str(bin_dir), prefix=f".{name}.", suffix=".tmp")
        os.close(fd)
        shutil.copyfile(artifact, tmp)
        os.chmod(tmp, EXECUTABLE_MODE)
        os.replace(tmp, target)
    except OSError as e:
        if tmp:
            Path(tmp).unlink(missing_ok=True)
        _remove_created(created)
        raise InstallError(f"安装失败 {target}: {e}") from e

    logger.info("  已安装: %s", target)
    return target
