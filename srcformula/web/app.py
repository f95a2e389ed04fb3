"""HTTP API（基于 Flask）

提供 formula 查询、安装与冒烟测试接口，返回 JSON。

启动方式: srcformula serve --port 8787
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from srcformula.core.exceptions import SrcFormulaError
from srcformula.web.blueprints.formulas_bp import formulas_bp
from srcformula.web.responses import error_response

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.register_blueprint(formulas_bp)


@app.errorhandler(SrcFormulaError)
def handle_domain_error(exc: SrcFormulaError):  # type: ignore[no-untyped-def]
    return error_response(exc)


@app.errorhandler(HTTPException)
def handle_http_exception(exc: HTTPException):  # type: ignore[no-untyped-def]
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(Exception)
def handle_generic_exception(exc: Exception):  # type: ignore[no-untyped-def]  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


def run_server(port: int = 8787, debug: bool = False, host: str = "127.0.0.1") -> None:
    logger.info("srcformula API 已启动: http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug, threaded=True)
