"""归档完整性校验"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from srcformula.core.exceptions import FetchError, IntegrityError
from srcformula.core.models import IntegrityHash

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def file_digest(path: Path, algorithm: str) -> str:
    """流式计算文件摘要（十六进制）"""
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_integrity(path: Path, expected: IntegrityHash) -> None:
    """比对归档摘要，不一致即失败，必须在解包之前调用

    Raises:
        IntegrityError: 摘要不匹配
        FetchError: 归档不可读
    """
    try:
        actual = file_digest(path, expected.algorithm)
    except OSError as e:
        raise FetchError(f"读取归档失败: {path}: {e}") from e
    if actual != expected.digest:
        raise IntegrityError(
            f"校验和不匹配 {path.name}: 期望 {expected.digest}, 实际 {actual}",
            expected=expected.digest, actual=actual,
        )
    logger.info("  校验和通过 (%s): %s", expected.algorithm, path.name)
