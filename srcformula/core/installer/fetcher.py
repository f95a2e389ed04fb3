"""源码包拉取器

职责:
- 下载 formula.url 到下载缓存 <cache_dir>/<name>/<version>/<文件名>
- 缓存命中直接复用（force=True 时重新下载）
- 先写 .part 临时文件，成功后 rename，失败清理
"""

from __future__ import annotations

import logging
import os
import urllib.error
import urllib.request
from pathlib import Path

from srcformula.core.exceptions import FetchError, ValidationError
from srcformula.core.models import Formula
from srcformula.utils.net import url_basename, validate_url_scheme

logger = logging.getLogger(__name__)


class SourceFetcher:
    """源码归档下载器"""

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = cache_dir

    def cache_path(self, formula: Formula) -> Path:
        """归档在下载缓存中的位置"""
        return self.cache_dir / formula.name / formula.version / url_basename(formula.url)

    def resolve(self, formula: Formula, *, force: bool = False) -> Path:
        """确保归档在本地可用，返回其路径

        Raises:
            FetchError: URL 协议不允许、网络错误、HTTP 错误状态或写盘失败
        """
        try:
            validate_url_scheme(formula.url, context=f"fetch {formula.name}")
            dest = self.cache_path(formula)
        except ValidationError as e:
            raise FetchError(str(e)) from e

        if dest.is_file() and not force:
            logger.info("  缓存命中: %s", dest)
            return dest

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FetchError(f"无法创建下载目录 {dest.parent}: {e}") from e

        part = dest.with_name(dest.name + ".part")
        logger.info("  下载: %s", formula.url)
        try:
            urllib.request.urlretrieve(formula.url, str(part))  # nosec B310
            os.replace(part, dest)
        except urllib.error.HTTPError as e:
            part.unlink(missing_ok=True)
            raise FetchError(f"下载失败: {formula.url} - HTTP {e.code} {e.reason}") from e
        except (urllib.error.URLError, OSError) as e:
            part.unlink(missing_ok=True)
            raise FetchError(f"下载失败: {formula.url} - {e}") from e

        logger.info("  已保存: %s", dest)
        return dest
