"""Domain errors and their RFC7807 handler registration."""
from __future__ import annotations

import logging
import traceback
import uuid
from collections.abc import Callable
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException
from werkzeug.wrappers.response import Response

from .http_errors import bad_request, internal_server_error, not_found, problem, unprocessable_entity

log = logging.getLogger("apiguard.errors")


class DomainError(Exception):
    def __init__(self, status: int, code: str, detail: str | None = None, **extra: Any):
        self.status = status
        self.code = code
        self.detail = detail or code
        self.extra = extra
        super().__init__(self.detail)


class ValidationError(DomainError):
    """Request content rejected by policy (422 with an ``errors`` list)."""

    def __init__(self, errors: Any, detail: str = "validation_error", **extra: Any):
        super().__init__(422, "validation_error", detail, **extra)
        self.errors = errors


class BadRequestError(DomainError):
    def __init__(self, detail: str = "bad_request", **extra: Any):
        super().__init__(400, "bad_request", detail, **extra)


_STATUS_HELPERS: dict[int, Callable[..., Response]] = {
    400: bad_request,
    404: not_found,
}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _h_validation(err: ValidationError) -> Response:
        log.warning("validation rejected path=%s errors=%s", request.path, err.errors)
        return unprocessable_entity(err.errors, detail=err.detail, **err.extra)

    @app.errorhandler(DomainError)
    def _h_domain(err: DomainError) -> Response:
        helper = _STATUS_HELPERS.get(err.status, bad_request)
        return helper(detail=err.detail, **err.extra)

    @app.errorhandler(HTTPException)
    def _h_http(ex: HTTPException) -> Response:
        status = ex.code or 500
        if status == 404:
            return not_found()
        if status >= 500:
            return internal_server_error()
        # other 4xx (405, 413, ...) keep their status
        return problem(status, "https://example.com/errors/http_error", ex.name, str(ex.description))

    @app.errorhandler(Exception)
    def _h_exception(ex: Exception) -> Response:
        incident_id = str(uuid.uuid4())
        log.error(
            "Unhandled exception incident_id=%s path=%s\n%s",
            incident_id,
            request.path,
            traceback.format_exc(),
        )
        return internal_server_error(incident_id=incident_id)


__all__ = ["DomainError", "ValidationError", "BadRequestError", "register_error_handlers"]
