"""JSON response helpers shared by the finance blueprints."""

from __future__ import annotations

from typing import Any, Callable, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..domain.results import Result

ADMIN_HEADER = "X-Admin-User"

STATUS_BY_CODE = {
    "validation": 400,
    "not_found": 404,
    "invalid_state": 409,
    "concurrency": 409,
    "insufficient_funds": 422,
    "external_provider": 502,
}


def admin_user_id() -> Optional[str]:
    """Acting admin id supplied by the authentication layer in front of the app."""

    value = request.headers.get(ADMIN_HEADER, "").strip()
    return value or None


def request_payload() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def respond(
    result: Result,
    *,
    serializer: Optional[Callable[[Any], Any]] = None,
    status: int = 200,
):
    """Turn a service ``Result`` into ``(json, status)``."""

    if not result.success:
        body = {"success": False, "error": result.error, "code": result.code}
        return jsonify(body), STATUS_BY_CODE.get(result.code or "", 500)
    data = serializer(result.data) if serializer else result.data
    return jsonify({"success": True, "data": data}), status


def form_errors(errors: dict[str, list[str]]):
    return (
        jsonify(
            {
                "success": False,
                "error": "Please correct the highlighted fields.",
                "code": "validation",
                "fields": errors,
            }
        ),
        400,
    )


def register_error_handlers(app: Flask) -> None:
    """Render HTTP errors (404, 405, ...) in the same envelope as service failures."""

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return (
            jsonify({"success": False, "error": exc.description, "code": exc.name.lower().replace(" ", "_")}),
            exc.code or 500,
        )
