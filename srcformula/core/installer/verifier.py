"""安装后冒烟测试"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from srcformula.core.exceptions import VerificationError
from srcformula.core.models import Verification
from srcformula.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)


def output_matches(output: str, verification: Verification) -> bool:
    if verification.regex:
        return re.search(verification.pattern, output) is not None
    return verification.pattern in output


def verify(
    executable: Path,
    verification: Verification,
    executor: CommandExecutor | None = None,
) -> str:
    """运行已安装的可执行文件并检查输出，返回合并后的输出

    失败不回滚安装，产物保留供人工排查。

    Raises:
        VerificationError: 文件不存在、无法执行、退出码不符或输出不匹配
    """
    if not executable.is_file():
        raise VerificationError(f"未安装: {executable}")

    cmd = [str(executable), *verification.args]
    logger.info("  test: %s", " ".join(cmd))
    try:
        r = (executor or get_executor()).execute(
            cmd, cwd=str(executable.parent), merge_stderr=True,
        )
    except OSError as e:
        raise VerificationError(f"无法执行 {executable}: {e}") from e

    if r.returncode != verification.expect_status:
        raise VerificationError(
            f"退出码 {r.returncode}，期望 {verification.expect_status}: {' '.join(cmd)}",
            output=r.output,
        )
    if not output_matches(r.output, verification):
        raise VerificationError(
            f"输出中未匹配到 {verification.pattern!r}: {' '.join(cmd)}",
            output=r.output,
        )
    logger.info("  测试通过: 匹配到 %r", verification.pattern)
    return r.output
