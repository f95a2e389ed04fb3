"""构建依赖检查与构建执行测试"""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from srcformula.core.exceptions import BuildError, MissingDependencyError
from srcformula.core.installer.builder import Builder
from srcformula.core.installer.toolchain import ensure_dependencies, go_std_args
from srcformula.core.models import BuildOptions, BuildStep, Formula


class TestGoStdArgs:
    def test_full(self) -> None:
        opts = BuildOptions(
            ldflags="-s -w -X main.version={version}", tags=("netgo", "osusergo"),
        )
        args = go_std_args(opts, "0.3.0", Path("/out/itsyhome"))
        assert args == [
            "-trimpath",
            "-o=/out/itsyhome",
            "-tags=netgo osusergo",
            "-ldflags=-s -w -X main.version=0.3.0",
        ]

    def test_minimal(self) -> None:
        args = go_std_args(BuildOptions(trimpath=False), "1.0", Path("/out/x"))
        assert args == ["-o=/out/x"]

    @pytest.mark.parametrize("version", ["0.3.0", "2.0-rc1", "10"])
    def test_version_substitution_is_verbatim(self, version: str) -> None:
        opts = BuildOptions(ldflags="-X main.version={version}")
        ldflags = go_std_args(opts, version, Path("/o"))[-1]
        assert ldflags.encode() == f"-ldflags=-X main.version={version}".encode()


class TestEnsureDependencies:
    def test_found_in_tool_paths(self, toolbin: Path) -> None:
        found = ensure_dependencies(("go",), [str(toolbin)])
        assert found == {"go": str(toolbin / "go")}

    def test_all_missing_reported(self, toolbin: Path) -> None:
        with pytest.raises(MissingDependencyError) as ei:
            ensure_dependencies(
                ("go", "no-such-tool-a1", "no-such-tool-b2"), [str(toolbin)],
            )
        assert ei.value.missing == ["no-such-tool-a1", "no-such-tool-b2"]
        assert "no-such-tool-a1" in str(ei.value)


class TestBuilder:
    def test_go_build_command(self, tmp_path: Path, formula: Formula, executor) -> None:
        src = tmp_path / "src"
        src.mkdir()
        builder = Builder(executor, build_env={"CGO_ENABLED": "0"})
        artifact = builder.build(formula, src, tmp_path / "out")

        assert artifact == tmp_path / "out" / "itsyhome"
        assert artifact.is_file()
        call = executor.calls[0]
        assert call["args"] == [
            "go", "build", "-trimpath",
            f"-o={tmp_path / 'out' / 'itsyhome'}",
            "-ldflags=-s -w -X main.version=0.3.0",
        ]
        assert call["cwd"] == str(src)
        assert call["env"]["CGO_ENABLED"] == "0"

    def test_embedded_version_matches_formula(self, tmp_path: Path, formula: Formula, executor) -> None:
        src = tmp_path / "src"
        src.mkdir()
        artifact = Builder(executor).build(formula, src, tmp_path / "out")
        assert f"main.version={formula.version}\n" in artifact.read_text()

    def test_failure_keeps_tool_output(self, tmp_path: Path, formula: Formula, fake_executor_cls) -> None:
        raw = "# github.com/x/y\n./main.go:3:1: syntax error\n\ttrailing\t\n"
        executor = fake_executor_cls(build_rc=2, build_output=raw)
        src = tmp_path / "src"
        src.mkdir()
        with pytest.raises(BuildError, match="rc=2") as ei:
            Builder(executor).build(formula, src, tmp_path / "out")
        assert ei.value.output == raw

    def test_stops_at_first_failed_step(self, tmp_path: Path, formula: Formula, fake_executor_cls) -> None:
        executor = fake_executor_cls(build_rc=1)
        two_steps = dataclasses.replace(
            formula,
            build_steps=(BuildStep(tool="go", args=("generate",)), *formula.build_steps),
        )
        src = tmp_path / "src"
        src.mkdir()
        with pytest.raises(BuildError, match="构建步骤 1 失败"):
            Builder(executor).build(two_steps, src, tmp_path / "out")
        assert len(executor.calls) == 1

    def test_missing_artifact(self, tmp_path: Path, formula: Formula, fake_executor_cls) -> None:
        executor = fake_executor_cls(write_artifact=False)
        src = tmp_path / "src"
        src.mkdir()
        with pytest.raises(BuildError, match="未找到产物"):
            Builder(executor).build(formula, src, tmp_path / "out")

    def test_artifact_in_source_without_std_args(self, tmp_path: Path, formula: Formula, executor) -> None:
        plain = dataclasses.replace(
            formula, build_steps=(BuildStep(tool="go", args=("build", "-o", "itsyhome")),),
        )
        src = tmp_path / "src"
        src.mkdir()
        builder = Builder(executor)
        assert builder.artifact_path(plain, src, tmp_path / "out") == src / "itsyhome"
        (src / "itsyhome").write_text("bin")
        assert builder.build(plain, src, tmp_path / "out") == src / "itsyhome"

    def test_unexecutable_tool(self, tmp_path: Path, formula: Formula) -> None:
        class Broken:
            def execute(self, args, **kwargs):  # type: ignore[no-untyped-def]
                raise FileNotFoundError(args[0])

        src = tmp_path / "src"
        src.mkdir()
        with pytest.raises(BuildError, match="无法执行构建工具 go"):
            Builder(Broken()).build(formula, src, tmp_path / "out")
