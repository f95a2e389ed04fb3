"""安装流水线 - 线性状态机

状态顺序:
  pending → resolved → integrity_checked → dependencies_satisfied
          → built → installed → verified

- 各阶段严格串行，前一阶段成功后才进入下一阶段
- 任一阶段抛出 InstallerError 即进入 failed，报告记录失败前到达的状态
- 校验和与构建依赖检查都在任何构建命令之前完成
- 解包/构建使用临时目录，成功与失败都会清理
- 冒烟测试失败不回滚已安装的产物
"""

from __future__ import annotations

import logging
import tempfile
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from srcformula.core.exceptions import InstallerError, VerificationError
from srcformula.core.installer.archive import extract_archive
from srcformula.core.installer.builder import Builder
from srcformula.core.installer.fetcher import SourceFetcher
from srcformula.core.installer.integrity import verify_integrity
from srcformula.core.installer.placer import Cellar, place_artifact
from srcformula.core.installer.toolchain import ensure_dependencies
from srcformula.core.installer.verifier import verify
from srcformula.core.models import Formula, InstallReport, InstallState
from srcformula.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


def _log_extra(formula: Formula, state: InstallState) -> dict[str, str]:
    return {"formula": formula.name, "version": formula.version, "stage": state.value}


class InstallPipeline:
    """formula → 已安装（并可选验证）的可执行文件"""

    def __init__(
        self,
        cache_dir: Path,
        install_root: Path,
        *,
        executor: CommandExecutor | None = None,
        build_env: dict[str, str] | None = None,
        tool_paths: list[str] | None = None,
    ) -> None:
        self.fetcher = SourceFetcher(cache_dir)
        self.cellar = Cellar(install_root)
        self.builder = Builder(executor, build_env=build_env, tool_paths=tool_paths)
        self.executor = self.builder.executor
        self.tool_paths = tool_paths or []

    @contextmanager
    def _stage(
        self, report: InstallReport, formula: Formula, state: InstallState,
    ) -> Iterator[None]:
        start = time.monotonic()
        yield
        report.advance(state, time.monotonic() - start)
        logger.info(
            "[%s] %s@%s", state.value, formula.name, formula.version,
            extra=_log_extra(formula, state),
        )

    def _fail(self, report: InstallReport, formula: Formula, exc: InstallerError) -> None:
        report.state = InstallState.FAILED
        report.error_code = exc.code
        report.error = str(exc)
        report.output = exc.output
        logger.error(
            "失败 %s@%s (停在 %s): %s", formula.name, formula.version,
            report.reached.value, exc,
            extra=_log_extra(formula, InstallState.FAILED),
        )
        if exc.output:
            logger.error("工具输出:\n%s", exc.output.rstrip())

    # ---- 单独阶段 ----

    def fetch(self, formula: Formula, *, force: bool = False) -> Path:
        """下载并校验归档（不构建）"""
        archive = self.fetcher.resolve(formula, force=force)
        verify_integrity(archive, formula.integrity)
        return archive

    def _verify(self, formula: Formula, report: InstallReport) -> None:
        if formula.verification is None:
            raise VerificationError(f"formula {formula.name} 未定义 test")
        executable = self.cellar.executable(formula)
        with self._stage(report, formula, InstallState.VERIFIED):
            verify(executable, formula.verification, self.executor)

    # ---- 入口 ----

    def install(
        self,
        formula: Formula,
        *,
        force_fetch: bool = False,
        run_test: bool = False,
        overwrite: bool = True,
    ) -> InstallReport:
        """执行完整安装流程，失败信息记录在返回的报告中"""
        report = InstallReport(formula=formula.name, version=formula.version)
        logger.info("开始安装 %s@%s", formula.name, formula.version)
        try:
            with self._stage(report, formula, InstallState.RESOLVED):
                archive = self.fetcher.resolve(formula, force=force_fetch)
            with self._stage(report, formula, InstallState.INTEGRITY_CHECKED):
                verify_integrity(archive, formula.integrity)
            with self._stage(report, formula, InstallState.DEPENDENCIES_SATISFIED):
                ensure_dependencies(formula.build_dependencies, self.tool_paths)

            with tempfile.TemporaryDirectory(
                prefix=f"srcformula-{formula.name}-", ignore_cleanup_errors=True,
            ) as work:
                with self._stage(report, formula, InstallState.BUILT):
                    source = extract_archive(archive, Path(work) / "src")
                    artifact = self.builder.build(formula, source, Path(work) / "out")
                with self._stage(report, formula, InstallState.INSTALLED):
                    installed = place_artifact(
                        artifact, self.cellar.bin_dir(formula), formula.executable,
                        overwrite=overwrite,
                    )
                    report.installed_path = str(installed)

            if run_test:
                if formula.verification is None:
                    logger.warning("formula %s 未定义 test，跳过验证", formula.name)
                else:
                    self._verify(formula, report)
        except InstallerError as e:
            self._fail(report, formula, e)
        return report

    def test(self, formula: Formula) -> InstallReport:
        """对已安装的产物运行冒烟测试"""
        report = InstallReport(formula=formula.name, version=formula.version)
        installed = self.cellar.executable(formula)
        if installed.is_file():
            report.state = report.reached = InstallState.INSTALLED
            report.installed_path = str(installed)
        try:
            self._verify(formula, report)
        except InstallerError as e:
            self._fail(report, formula, e)
        return report
