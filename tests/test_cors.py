from __future__ import annotations

from apiguard.app_factory import create_app
from apiguard.cors import ALLOW_METHODS


def _client(origins):
    app = create_app({"TESTING": True, "CORS_ALLOWED_ORIGINS": origins})
    return app.test_client()


def test_cors_disabled_without_origins():
    r = _client([]).get("/health", headers={"Origin": "https://a.example"})
    assert "Access-Control-Allow-Origin" not in r.headers


def test_allowed_origin_is_echoed():
    r = _client(["https://a.example"]).get("/health", headers={"Origin": "https://a.example"})
    assert r.headers["Access-Control-Allow-Origin"] == "https://a.example"
    assert r.headers["Access-Control-Allow-Methods"] == ALLOW_METHODS
    assert r.headers["Access-Control-Allow-Credentials"] == "true"


def test_unknown_origin_not_echoed():
    r = _client(["https://a.example"]).get("/health", headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in r.headers


def test_wildcard_allows_any_origin():
    r = _client(["*"]).get("/health", headers={"Origin": "https://b.example"})
    assert r.headers["Access-Control-Allow-Origin"] == "https://b.example"


def test_preflight_short_circuits():
    r = _client(["*"]).open("/api/records", method="OPTIONS", headers={"Origin": "https://b.example"})
    assert r.status_code == 200
    assert r.headers["Access-Control-Allow-Headers"] == "Content-Type, Authorization"
