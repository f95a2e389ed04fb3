"""srcformula 日志配置

支持普通文本和结构化 JSON 两种输出格式。
流水线日志通过 extra={"formula": ..., "stage": ...} 附带上下文，
JSON 格式下会作为独立字段输出，便于 CI 按包/阶段过滤。
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

# 通过 extra= 传入、需要原样输出到 JSON 的上下文字段
CONTEXT_FIELDS = ("formula", "version", "stage")

ENV_LOG_LEVEL = "SRCFORMULA_LOG_LEVEL"
ENV_LOG_JSON = "SRCFORMULA_LOG_JSON"


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "INFO",
            "logger": "srcformula.core.installer.pipeline",
            "message": "构建完成: itsyhome",
            "formula": "itsyhome",
            "stage": "built",
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR, CRITICAL）
        json_output: 为 True 时使用 JSON 格式（适用于 CI），否则使用人类可读格式

    说明:
        - 输出到 stderr，stdout 留给命令结果
        - 自动清理已有 handlers，避免重复输出
    """
    root = logging.getLogger()
    reset_logging()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        fmt = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
        handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)


def setup_logging_from_env() -> None:
    """按环境变量 SRCFORMULA_LOG_LEVEL / SRCFORMULA_LOG_JSON 配置日志"""
    setup_logging(
        level=os.getenv(ENV_LOG_LEVEL, "INFO"),
        json_output=os.getenv(ENV_LOG_JSON, "") == "1",
    )


def reset_logging() -> None:
    """清理根日志器上所有 handlers（测试或重新配置时使用）"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
