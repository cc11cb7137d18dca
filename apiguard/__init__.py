"""API request-normalization helpers and a thin Flask host."""

from .app_factory import create_app
from .pagination import normalize_pagination
from .query_guard import clean, is_valid_query, sanitize, validate_query
from .remote_address import resolve_client_address

__all__ = [
    "create_app",
    "normalize_pagination",
    "clean",
    "sanitize",
    "is_valid_query",
    "validate_query",
    "resolve_client_address",
]
