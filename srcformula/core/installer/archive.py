"""源码归档解包

支持 tar (gz/xz/bz2/无压缩) 与 zip。解包前逐项检查成员路径，
拒绝绝对路径、.. 越界以及指向目标目录之外的链接。
"""

from __future__ import annotations

import logging
import os
import tarfile
import zipfile
from pathlib import Path

from srcformula.core.exceptions import FetchError, ValidationError

logger = logging.getLogger(__name__)

TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar.xz", ".txz", ".tar.bz2", ".tbz2", ".tar")
ZIP_SUFFIXES = (".zip",)
ARCHIVE_SUFFIXES = TAR_SUFFIXES + ZIP_SUFFIXES


def split_archive_name(filename: str) -> tuple[str, str]:
    """拆分归档文件名为 (stem, suffix)

    Raises:
        ValidationError: 扩展名不受支持
    """
    lower = filename.lower()
    for suffix in ARCHIVE_SUFFIXES:
        if lower.endswith(suffix) and len(filename) > len(suffix):
            return filename[: -len(suffix)], suffix
    raise ValidationError(
        f"不支持的归档类型: {filename}，可用扩展名: {', '.join(ARCHIVE_SUFFIXES)}",
    )


def _inside(root: Path, target: Path) -> bool:
    try:
        target.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def _check_member_path(dest: Path, name: str, archive: Path) -> None:
    if os.path.isabs(name) or name.startswith(("/", "\\")):
        raise FetchError(f"归档 {archive.name} 含绝对路径成员: {name}")
    if not _inside(dest, dest / name):
        raise FetchError(f"归档 {archive.name} 成员越界: {name}")


def _check_tar_members(tf: tarfile.TarFile, dest: Path, archive: Path) -> None:
    for member in tf.getmembers():
        _check_member_path(dest, member.name, archive)
        if member.issym():
            target = (dest / member.name).parent / member.linkname
            if os.path.isabs(member.linkname) or not _inside(dest, target):
                raise FetchError(
                    f"归档 {archive.name} 符号链接指向外部: {member.name} -> {member.linkname}",
                )
        elif member.islnk():
            if not _inside(dest, dest / member.linkname):
                raise FetchError(
                    f"归档 {archive.name} 硬链接指向外部: {member.name} -> {member.linkname}",
                )
        elif not (member.isfile() or member.isdir()):
            raise FetchError(f"归档 {archive.name} 含设备或管道文件: {member.name}")


def source_root(dest: Path) -> Path:
    """解包目录下只有一个顶层目录时（如 GitHub tag 归档）以它为源码根目录"""
    entries = list(dest.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return dest


def extract_archive(archive: Path, dest: Path) -> Path:
    """解包归档到 dest，返回源码根目录

    Raises:
        FetchError: 归档损坏、类型不支持或含不安全成员
    """
    try:
        _, suffix = split_archive_name(archive.name)
    except ValidationError as e:
        raise FetchError(str(e)) from e
    dest.mkdir(parents=True, exist_ok=True)

    try:
        if suffix in ZIP_SUFFIXES:
            with zipfile.ZipFile(archive) as zf:
                for name in zf.namelist():
                    _check_member_path(dest, name, archive)
                zf.extractall(dest)
        else:
            with tarfile.open(archive, "r:*") as tf:
                _check_tar_members(tf, dest, archive)
                if hasattr(tarfile, "data_filter"):
                    tf.extractall(dest, filter="data")
                else:
                    tf.extractall(dest)  # nosec B202 - 成员已逐项检查
    except (tarfile.TarError, zipfile.BadZipFile, OSError) as e:
        raise FetchError(f"解包失败: {archive.name}: {e}") from e

    root = source_root(dest)
    logger.info("  已解包: %s -> %s", archive.name, root)
    return root
