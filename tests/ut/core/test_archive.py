"""归档解包测试"""

from __future__ import annotations

import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from srcformula.core.exceptions import FetchError, ValidationError
from srcformula.core.installer.archive import extract_archive, split_archive_name


class TestSplitArchiveName:
    @pytest.mark.parametrize(("name", "stem", "suffix"), [
        ("v0.3.0.tar.gz", "v0.3.0", ".tar.gz"),
        ("foo-1.0.TGZ", "foo-1.0", ".tgz"),
        ("foo-1.0.zip", "foo-1.0", ".zip"),
        ("foo-1.0.tar", "foo-1.0", ".tar"),
    ])
    def test_supported(self, name: str, stem: str, suffix: str) -> None:
        assert split_archive_name(name) == (stem, suffix)

    @pytest.mark.parametrize("name", ["foo-1.0.rpm", ".tar.gz", "README"])
    def test_unsupported(self, name: str) -> None:
        with pytest.raises(ValidationError, match="不支持的归档类型"):
            split_archive_name(name)


class TestExtractArchive:
    def test_single_top_level_dir_is_source_root(self, tmp_path: Path, tar_factory) -> None:
        archive = tar_factory(tmp_path / "v1.0.tar.gz", {
            "proj-1.0/main.go": "package main\n",
            "proj-1.0/cmd/root.go": "package cmd\n",
        })
        root = extract_archive(archive, tmp_path / "src")
        assert root == tmp_path / "src" / "proj-1.0"
        assert (root / "cmd" / "root.go").read_text() == "package cmd\n"

    def test_flat_archive_root_is_dest(self, tmp_path: Path, tar_factory) -> None:
        archive = tar_factory(tmp_path / "v1.0.tar.gz", {
            "main.go": "package main\n",
            "go.mod": "module x\n",
        })
        root = extract_archive(archive, tmp_path / "src")
        assert root == tmp_path / "src"

    def test_zip(self, tmp_path: Path) -> None:
        archive = tmp_path / "v1.0.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("proj-1.0/main.go", "package main\n")
        root = extract_archive(archive, tmp_path / "src")
        assert (root / "main.go").exists()

    def test_path_traversal_rejected(self, tmp_path: Path, tar_factory) -> None:
        archive = tar_factory(tmp_path / "v1.0.tar.gz", {"../evil.sh": "rm -rf /\n"})
        with pytest.raises(FetchError, match="越界"):
            extract_archive(archive, tmp_path / "src")
        assert not (tmp_path / "evil.sh").exists()

    def test_absolute_member_rejected(self, tmp_path: Path, tar_factory) -> None:
        archive = tar_factory(tmp_path / "v1.0.tar.gz", {"/etc/evil": "x\n"})
        with pytest.raises(FetchError, match="绝对路径"):
            extract_archive(archive, tmp_path / "src")

    def test_symlink_outside_rejected(self, tmp_path: Path) -> None:
        archive = tmp_path / "v1.0.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            link = tarfile.TarInfo("proj/passwd")
            link.type = tarfile.SYMTYPE
            link.linkname = "../../../etc/passwd"
            tf.addfile(link)
        with pytest.raises(FetchError, match="符号链接指向外部"):
            extract_archive(archive, tmp_path / "src")

    def test_corrupt_archive(self, tmp_path: Path) -> None:
        archive = tmp_path / "v1.0.tar.gz"
        archive.write_bytes(b"not a tarball")
        with pytest.raises(FetchError, match="解包失败"):
            extract_archive(archive, tmp_path / "src")

    def test_zip_traversal_rejected(self, tmp_path: Path) -> None:
        archive = tmp_path / "v1.0.zip"
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("../evil.sh", "x")
        archive.write_bytes(buf.getvalue())
        with pytest.raises(FetchError, match="越界"):
            extract_archive(archive, tmp_path / "src")
