import os
import sys

import pytest

# Path setup before any project imports
ROOT = os.path.dirname(__file__)
PARENT = os.path.abspath(os.path.join(ROOT, ".."))
if PARENT not in sys.path:  # pragma: no cover - environment dependent
    sys.path.insert(0, PARENT)

from apiguard.app_factory import create_app  # noqa: E402
from apiguard.metrics import NoopMetrics, set_metrics  # noqa: E402

RECORDS = [
    {"id": 1, "name": "alpha", "status": "active", "age": 31, "user": {"name": "ann", "role": "admin"}, "secret": "s1"},
    {"id": 2, "name": "beta", "status": "inactive", "age": 25, "user": {"name": "bob", "role": "user"}, "secret": "s2"},
    {"id": 3, "name": "gamma", "status": "active", "age": 44, "user": {"name": "cid", "role": "user"}, "secret": "s3"},
    {"id": 4, "name": "delta", "status": "active", "age": 19, "user": {"name": "dee", "role": "user"}, "secret": "s4"},
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "HTTP_FORWARDED_COUNT",
        "API_UPPER_COUNT_LIMIT",
        "API_DEFAULT_COUNT",
        "API_ALLOW_INFINITE_COUNT",
        "CORS_ALLOW_ORIGINS",
        "QUERY_ALLOWED_FIELDS",
        "QUERY_ALLOWED_OPERATORS",
        "METRICS_BACKEND",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    set_metrics(NoopMetrics())


@pytest.fixture
def app():
    return create_app(
        {
            "TESTING": True,
            "RECORDS": RECORDS,
            "QUERY_ALLOWED_FIELDS": ["id", "name", "status", "age", "user", "user.name", "user.role"],
            "QUERY_ALLOWED_OPERATORS": ["$or", "$and", "$gt", "$in"],
        }
    )


@pytest.fixture
def client(app):
    return app.test_client()
