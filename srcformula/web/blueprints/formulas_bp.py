"""formula API Blueprint"""

from __future__ import annotations

from flask import Blueprint, Response, request

from srcformula.core.exceptions import ValidationError
from srcformula.web.responses import ok

formulas_bp = Blueprint("formulas", __name__, url_prefix="/api/formulas")


def _svc():  # type: ignore[no-untyped-def]
    from srcformula.services.container import get_container
    return get_container().installer


@formulas_bp.route("", methods=["GET"])
def list_all() -> tuple[Response, int] | Response:
    return ok({"formulas": _svc().list_all()})


@formulas_bp.route("/<name>", methods=["GET"])
def get(name: str) -> tuple[Response, int] | Response:
    return ok({"formula": _svc().info(name)})


@formulas_bp.route("/<name>/install", methods=["POST"])
def install(name: str) -> tuple[Response, int] | Response:
    body = request.get_json(silent=True)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ValidationError("请求体必须是 JSON 对象")
    report = _svc().install(
        name,
        run_test=bool(body.get("test", False)),
        force_fetch=bool(body.get("force_fetch", False)),
    )
    return ok({"report": report.to_dict()})


@formulas_bp.route("/<name>/test", methods=["POST"])
def test(name: str) -> tuple[Response, int] | Response:
    report = _svc().test(name)
    return ok({"report": report.to_dict()})
