"""Web 层统一响应辅助函数"""

from __future__ import annotations

from flask import Response, jsonify

from srcformula.core.exceptions import (
    ConfigError,
    FormulaNotFoundError,
    SrcFormulaError,
    ValidationError,
)


def ok(data: dict, status: int = 200) -> tuple[Response, int] | Response:
    """成功响应"""
    if status == 200:
        return jsonify(data)
    return jsonify(data), status


def error_response(exc: SrcFormulaError) -> tuple[Response, int]:
    """业务异常 → JSON 错误响应"""
    if isinstance(exc, FormulaNotFoundError):
        status = 404
    elif isinstance(exc, (ValidationError, ConfigError)):
        status = 400
    else:
        status = 500
    body: dict = {"error": str(exc), "code": exc.code}
    if isinstance(exc, ValidationError) and exc.details:
        body["details"] = exc.details
    return jsonify(body), status
