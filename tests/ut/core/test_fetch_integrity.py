"""下载与校验和测试"""

from __future__ import annotations

import dataclasses
import hashlib
from pathlib import Path

import pytest

from srcformula.core.exceptions import FetchError, IntegrityError
from srcformula.core.installer.fetcher import SourceFetcher
from srcformula.core.installer.integrity import file_digest, verify_integrity
from srcformula.core.models import Formula, IntegrityHash


class TestSourceFetcher:
    def test_download_to_cache(self, tmp_path: Path, formula: Formula, downloads: list[str]) -> None:
        fetcher = SourceFetcher(tmp_path / "cache")
        path = fetcher.resolve(formula)
        assert path == tmp_path / "cache" / "itsyhome" / "0.3.0" / "v0.3.0.tar.gz"
        assert path.is_file()
        assert downloads == [formula.url]
        assert not path.with_name(path.name + ".part").exists()

    def test_cache_hit_skips_download(self, tmp_path: Path, formula: Formula, downloads: list[str]) -> None:
        fetcher = SourceFetcher(tmp_path / "cache")
        fetcher.resolve(formula)
        fetcher.resolve(formula)
        assert len(downloads) == 1

    def test_force_redownloads(self, tmp_path: Path, formula: Formula, downloads: list[str]) -> None:
        fetcher = SourceFetcher(tmp_path / "cache")
        fetcher.resolve(formula)
        fetcher.resolve(formula, force=True)
        assert len(downloads) == 2

    def test_http_error(self, tmp_path: Path, formula: Formula, downloads: list[str]) -> None:
        missing = dataclasses.replace(
            formula, url="https://example.com/gone/v0.3.0.tar.gz",
        )
        fetcher = SourceFetcher(tmp_path / "cache")
        with pytest.raises(FetchError, match="HTTP 404"):
            fetcher.resolve(missing)
        cache_dir = tmp_path / "cache" / "itsyhome" / "0.3.0"
        assert list(cache_dir.iterdir()) == []

    def test_disallowed_scheme(self, tmp_path: Path, formula: Formula) -> None:
        ftp = dataclasses.replace(formula, url="ftp://example.com/v0.3.0.tar.gz")
        with pytest.raises(FetchError, match="不允许的 URL 协议"):
            SourceFetcher(tmp_path / "cache").resolve(ftp)


class TestIntegrity:
    def test_digest(self, tmp_path: Path) -> None:
        p = tmp_path / "blob"
        p.write_bytes(b"hello")
        assert file_digest(p, "sha256") == hashlib.sha256(b"hello").hexdigest()
        assert file_digest(p, "sha512") == hashlib.sha512(b"hello").hexdigest()

    def test_match(self, archive: Path) -> None:
        digest = hashlib.sha256(archive.read_bytes()).hexdigest()
        verify_integrity(archive, IntegrityHash("sha256", digest))

    def test_mismatch(self, archive: Path) -> None:
        expected = "0" * 64
        with pytest.raises(IntegrityError, match="校验和不匹配") as ei:
            verify_integrity(archive, IntegrityHash("sha256", expected))
        assert ei.value.expected == expected
        assert ei.value.actual == hashlib.sha256(archive.read_bytes()).hexdigest()

    def test_unreadable(self, tmp_path: Path) -> None:
        with pytest.raises(FetchError, match="读取归档失败"):
            verify_integrity(tmp_path / "missing.tar.gz", IntegrityHash("sha256", "0" * 64))
