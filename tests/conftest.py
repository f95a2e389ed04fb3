"""测试共享 fixture — 本地归档 + 假下载 + 假工具链

网络与 go 工具链都被替换:
  - urlretrieve 从本地文件复制，未登记的 URL 返回 HTTP 404
  - 构建工具 go 只是 tool_paths 下一个可执行的占位文件（满足依赖检查）
  - FakeExecutor 按 -o= 参数写出产物，并为冒烟测试返回预设输出
"""

from __future__ import annotations

import hashlib
import io
import shutil
import tarfile
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

import pytest

from srcformula.core.installer.pipeline import InstallPipeline
from srcformula.core.loader import formula_from_dict
from srcformula.core.models import Formula
from srcformula.utils.shell import CommandResult

ARCHIVE_URL = "https://example.com/itsyhome-cli/archive/refs/tags/v0.3.0.tar.gz"


def make_tar(path: Path, files: dict[str, str]) -> Path:
    """按 {成员名: 内容} 生成 tar.gz"""
    with tarfile.open(path, "w:gz") as tf:
        for name, content in files.items():
            data = content.encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
    return path


def sha256_of(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


class FakeExecutor:
    """假命令执行器

    - go: 失败模式下返回 build_rc/build_output；否则把产物写到 -o= 指定位置，
      内容包含渲染后的 ldflags，便于断言版本替换
    - 其他命令（冒烟测试）: 返回 run_rc/run_output
    """

    def __init__(
        self,
        *,
        build_rc: int = 0,
        build_output: str = "",
        write_artifact: bool = True,
        run_rc: int = 0,
        run_output: str = "itsyhome - control HomeKit devices\n",
    ) -> None:
        self.build_rc = build_rc
        self.build_output = build_output
        self.write_artifact = write_artifact
        self.run_rc = run_rc
        self.run_output = run_output
        self.calls: list[dict[str, Any]] = []

    def execute(
        self,
        args: list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        merge_stderr: bool = False,
    ) -> CommandResult:
        self.calls.append({"args": list(args), "cwd": cwd, "env": env})
        if args[0] == "go":
            if self.build_rc:
                return CommandResult(list(args), self.build_rc, self.build_output)
            out = next((a[len("-o="):] for a in args if a.startswith("-o=")), "")
            if self.write_artifact and out:
                ldflags = next(
                    (a[len("-ldflags="):] for a in args if a.startswith("-ldflags=")), "",
                )
                Path(out).write_text(f"#!/bin/sh\n# ldflags: {ldflags}\necho itsyhome\n")
            return CommandResult(list(args), 0, self.build_output)
        return CommandResult(list(args), self.run_rc, self.run_output)

    @property
    def build_calls(self) -> list[list[str]]:
        return [c["args"] for c in self.calls if c["args"][0] == "go"]


@pytest.fixture()
def archive(tmp_path: Path) -> Path:
    """GitHub tag 风格归档: 单个顶层目录"""
    src = tmp_path / "upstream"
    src.mkdir()
    return make_tar(src / "v0.3.0.tar.gz", {
        "itsyhome-cli-0.3.0/go.mod": "module github.com/nickustinov/itsyhome-cli\n",
        "itsyhome-cli-0.3.0/main.go": "package main\n\nvar version = \"dev\"\n",
    })


@pytest.fixture()
def formula_data(archive: Path) -> dict[str, Any]:
    return {
        "name": "itsyhome",
        "description": "CLI tool to control HomeKit devices via Itsyhome",
        "homepage": "https://github.com/nickustinov/itsyhome-cli",
        "url": ARCHIVE_URL,
        "sha256": sha256_of(archive),
        "license": "MIT",
        "build_dependencies": ["go"],
        "build": [{
            "tool": "go",
            "args": ["build"],
            "std_args": True,
            "ldflags": "-s -w -X main.version={version}",
        }],
        "test": {"args": ["--help"], "pattern": "itsyhome"},
    }


@pytest.fixture()
def formula(formula_data: dict[str, Any]) -> Formula:
    return formula_from_dict(formula_data)


@pytest.fixture()
def downloads(monkeypatch: pytest.MonkeyPatch, archive: Path) -> list[str]:
    """替换 urlretrieve；返回值记录每次下载的 URL"""
    served = {ARCHIVE_URL: archive}
    fetched: list[str] = []

    def fake_urlretrieve(url: str, filename: str) -> tuple[str, None]:
        fetched.append(url)
        src = served.get(url)
        if src is None:
            raise urllib.error.HTTPError(url, 404, "Not Found", None, None)  # type: ignore[arg-type]
        shutil.copyfile(src, filename)
        return filename, None

    monkeypatch.setattr(urllib.request, "urlretrieve", fake_urlretrieve)
    return fetched


@pytest.fixture()
def toolbin(tmp_path: Path) -> Path:
    """含可执行占位文件 go 的目录"""
    d = tmp_path / "toolbin"
    d.mkdir()
    go = d / "go"
    go.write_text("#!/bin/sh\nexit 0\n")
    go.chmod(0o755)
    return d


@pytest.fixture()
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def pipeline(tmp_path: Path, toolbin: Path, executor: FakeExecutor) -> InstallPipeline:
    return InstallPipeline(
        cache_dir=tmp_path / "cache",
        install_root=tmp_path / "cellar",
        executor=executor,
        build_env={"CGO_ENABLED": "0"},
        tool_paths=[str(toolbin)],
    )


@pytest.fixture()
def fake_executor_cls() -> type[FakeExecutor]:
    return FakeExecutor


@pytest.fixture()
def tar_factory():  # type: ignore[no-untyped-def]
    return make_tar
