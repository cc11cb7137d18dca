from __future__ import annotations

import logging

from apiguard.errors import DomainError


def test_404_problem_schema(client):
    r = client.get("/__no_such_route__")
    assert r.status_code == 404
    assert r.mimetype == "application/problem+json"
    data = r.get_json()
    assert data["status"] == 404
    assert data["type"].endswith("/not_found")
    assert data["request_id"] == r.headers["X-Request-Id"]


def test_405_keeps_status(client):
    r = client.post("/health")
    assert r.status_code == 405
    assert r.get_json()["status"] == 405


def test_domain_error_maps_to_problem(app):
    @app.get("/boom-domain")
    def _boom_domain():
        raise DomainError(404, "not_found", "record_missing")

    r = app.test_client().get("/boom-domain")
    assert r.status_code == 404
    assert r.get_json()["detail"] == "record_missing"


def test_unhandled_exception_is_500_with_incident(app, caplog):
    app.config["PROPAGATE_EXCEPTIONS"] = False

    @app.get("/boom")
    def _boom():
        raise RuntimeError("kaboom")

    caplog.set_level(logging.ERROR, logger="apiguard.errors")
    r = app.test_client().get("/boom")
    assert r.status_code == 500
    incident = r.get_json()["incident_id"]
    assert any(incident in rec.getMessage() for rec in caplog.records)
