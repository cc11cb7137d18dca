from __future__ import annotations

from apiguard.app_factory import create_app
from apiguard.config import Config


def test_defaults():
    cfg = Config.from_env()
    assert cfg.api_upper_count_limit == 100
    assert cfg.api_default_count == 50
    assert cfg.api_allow_infinite_count is False
    assert cfg.http_forwarded_count == 0
    assert cfg.cors_allowed_origins == []
    assert cfg.query_allowed_fields == ["*"]
    assert cfg.query_allowed_operators == ["$or", "$and"]


def test_from_env(monkeypatch):
    monkeypatch.setenv("API_UPPER_COUNT_LIMIT", "250")
    monkeypatch.setenv("API_DEFAULT_COUNT", "bogus")
    monkeypatch.setenv("API_ALLOW_INFINITE_COUNT", "true")
    monkeypatch.setenv("HTTP_FORWARDED_COUNT", "2")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("QUERY_ALLOWED_FIELDS", "name,user.*")
    cfg = Config.from_env()
    assert cfg.api_upper_count_limit == 250
    assert cfg.api_default_count == 50
    assert cfg.api_allow_infinite_count is True
    assert cfg.http_forwarded_count == 2
    assert cfg.cors_allowed_origins == ["https://a.example", "https://b.example"]
    assert cfg.query_allowed_fields == ["name", "user.*"]


def test_negative_forwarded_count_clamped(monkeypatch):
    monkeypatch.setenv("HTTP_FORWARDED_COUNT", "-3")
    assert Config.from_env().http_forwarded_count == 0


def test_app_overrides():
    app = create_app({"TESTING": True, "api_default_count": 75, "HTTP_FORWARDED_COUNT": 1})
    assert app.config["API_DEFAULT_COUNT"] == 75
    assert app.config["HTTP_FORWARDED_COUNT"] == 1
    assert app.config["RECORDS"] == []
