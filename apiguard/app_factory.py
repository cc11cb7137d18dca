"""Flask application factory.

Wires:
 - Configuration from env (.env honored) with per-app overrides
 - Metrics backend (noop | log)
 - Request id / timing log line
 - Client address resolution (g.client_ip)
 - CORS allow-list
 - RFC7807 error handlers
 - Blueprints (records API) and /health
"""

from __future__ import annotations

import logging
from typing import Any

from dotenv import load_dotenv
from flask import Flask, jsonify

from .config import Config
from .cors import init_cors
from .errors import register_error_handlers
from .logging_setup import init_request_logging
from .metrics import configure_metrics
from .records_api import bp as records_bp
from .remote_address import init_remote_address

log = logging.getLogger("apiguard")


def create_app(config_override: dict[str, Any] | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)

    # --- Configuration ---
    cfg = Config.from_env()
    if config_override:
        known = {k: v for k, v in config_override.items() if hasattr(cfg, k)}
        if known:
            cfg.override(known)
    app.config.update(cfg.to_flask_dict())
    if config_override:
        for k, v in config_override.items():  # direct Flask config keys win
            if k.isupper():
                app.config[k] = v
    app.config.setdefault("RECORDS", [])

    # --- Metrics backend wiring ---
    backend = app.config.get("METRICS_BACKEND") or "noop"
    configure_metrics(backend)
    log.info("Metrics backend initialized: %s", backend)

    # --- Request middleware (order matters: id/timer, client address, CORS) ---
    init_request_logging(app)
    init_remote_address(app)
    init_cors(app)

    # --- Error handling ---
    register_error_handlers(app)

    # --- Blueprints ---
    app.register_blueprint(records_bp)

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    return app


__all__ = ["create_app"]
