"""CORS allow-list middleware.

Origins come from ``CORS_ALLOWED_ORIGINS``; a ``*`` entry admits any origin.
An empty list disables CORS headers entirely. Preflight ``OPTIONS`` requests
are answered directly with 200.
"""

from __future__ import annotations

from flask import Flask, make_response, request
from werkzeug.wrappers.response import Response

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"


def _allowed_origin(allowed: list[str]) -> str | None:
    origin = request.headers.get("Origin")
    if "*" in allowed:
        return origin or "*"
    if origin and origin in allowed:
        return origin
    return None


def init_cors(app: Flask) -> None:
    def _allowed() -> list[str]:
        return list(app.config.get("CORS_ALLOWED_ORIGINS") or [])

    @app.before_request
    def _preflight() -> Response | None:
        if request.method != "OPTIONS" or not _allowed():
            return None
        return make_response("", 200)  # headers added by _apply_cors

    @app.after_request
    def _apply_cors(resp: Response) -> Response:
        allowed = _allowed()
        if not allowed:
            return resp
        origin = _allowed_origin(allowed)
        if origin:
            resp.headers.setdefault("Vary", "Origin")
            resp.headers["Access-Control-Allow-Origin"] = origin
        resp.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
        resp.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
        resp.headers["Access-Control-Allow-Credentials"] = "true"
        return resp


__all__ = ["init_cors", "ALLOW_METHODS", "ALLOW_HEADERS"]
