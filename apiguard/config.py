from __future__ import annotations

import os
from dataclasses import dataclass, field


def _csv(raw: str) -> list[str]:
    return [s for s in [p.strip() for p in raw.split(",")] if s]


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    api_upper_count_limit: int = 100
    api_default_count: int = 50
    api_allow_infinite_count: bool = False
    http_forwarded_count: int = 0  # trusted reverse proxies in front of the app
    cors_allowed_origins: list[str] = field(default_factory=list)
    query_allowed_fields: list[str] = field(default_factory=lambda: ["*"])
    query_allowed_operators: list[str] = field(default_factory=lambda: ["$or", "$and"])
    metrics_backend: str = "noop"

    @classmethod
    def from_env(cls) -> Config:
        return cls(
            api_upper_count_limit=_int_env("API_UPPER_COUNT_LIMIT", 100),
            api_default_count=_int_env("API_DEFAULT_COUNT", 50),
            api_allow_infinite_count=_bool_env("API_ALLOW_INFINITE_COUNT"),
            http_forwarded_count=max(_int_env("HTTP_FORWARDED_COUNT", 0), 0),
            cors_allowed_origins=_csv(os.getenv("CORS_ALLOW_ORIGINS", "")),
            query_allowed_fields=_csv(os.getenv("QUERY_ALLOWED_FIELDS", "*")),
            query_allowed_operators=_csv(os.getenv("QUERY_ALLOWED_OPERATORS", "$or,$and")),
            metrics_backend=os.getenv("METRICS_BACKEND", "noop").strip().lower() or "noop",
        )

    def override(self, d: dict):
        for k, v in d.items():
            if hasattr(self, k):
                setattr(self, k, v)

    def to_flask_dict(self):
        return {
            "API_UPPER_COUNT_LIMIT": self.api_upper_count_limit,
            "API_DEFAULT_COUNT": self.api_default_count,
            "API_ALLOW_INFINITE_COUNT": self.api_allow_infinite_count,
            "HTTP_FORWARDED_COUNT": self.http_forwarded_count,
            "CORS_ALLOWED_ORIGINS": self.cors_allowed_origins,
            "QUERY_ALLOWED_FIELDS": self.query_allowed_fields,
            "QUERY_ALLOWED_OPERATORS": self.query_allowed_operators,
            "METRICS_BACKEND": self.metrics_backend,
        }
