"""Request logging / timing middleware.

Every request gets a correlation id (incoming ``X-Request-Id`` or a new
uuid4) and one structured log line on the ``apiguard.request`` logger once the
response is ready.
"""

from __future__ import annotations

import logging
import time
import uuid

from flask import Flask, g, request
from werkzeug.wrappers.response import Response

REQUEST_LOGGER = "apiguard.request"


def _request_logger() -> logging.Logger:
    log = logging.getLogger(REQUEST_LOGGER)
    # Avoid duplicate handlers when several apps are created in one process
    if not log.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(message)s"))
        log.addHandler(h)
    log.setLevel(logging.INFO)
    return log


def init_request_logging(app: Flask) -> None:
    log = _request_logger()

    @app.before_request
    def _start_timer() -> None:
        g._t0 = time.perf_counter()
        g.request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())

    @app.after_request
    def _log_request(resp: Response) -> Response:
        dur_ms = int((time.perf_counter() - getattr(g, "_t0", time.perf_counter())) * 1000)
        rid = getattr(g, "request_id", None) or str(uuid.uuid4())
        resp.headers["X-Request-Id"] = rid
        resp.headers["X-Request-Duration-ms"] = str(dur_ms)
        log.info(
            {
                "request_id": rid,
                "client_ip": getattr(g, "client_ip", None),
                "method": request.method,
                "path": request.path,
                "status": resp.status_code,
                "duration_ms": dur_ms,
            }
        )
        return resp


__all__ = ["REQUEST_LOGGER", "init_request_logging"]
