"""Query filter sanitization and allow-list validation.

Client supplied filter objects are cleaned of prototype-pollution keys and
checked against an allow-list of attributes and operators before they are
forwarded to a data store. Callers must reject the request when validation
fails rather than continue with a partially cleaned filter.

Two entry points:
- ``validate_query`` returns a ``QueryValidation`` holding its own errors.
- ``is_valid_query`` returns a bool and publishes errors to ``last_errors``
  (cleared at the start of each call; last call wins).
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "DANGEROUS_KEYS",
    "AllowMatch",
    "MAX_QUERY_DEPTH",
    "QueryDepthError",
    "QueryValidation",
    "remove_dangerous_props",
    "sanitize",
    "strip_operators",
    "clean",
    "match_attribute",
    "validate_query",
    "is_valid_query",
    "last_errors",
]

DANGEROUS_KEYS = frozenset({"__proto__", "constructor", "prototype"})

OPERATOR_PREFIX = "$"
GLOBAL_WILDCARD = "*"
PREFIX_WILDCARD_SUFFIX = ".*"

# objects and arrays both count as a level; the filter itself is level 1
MAX_QUERY_DEPTH = 32

# Shared diagnostics slot for is_valid_query (not safe across concurrent calls)
last_errors: list[str] = []


class QueryDepthError(ValueError):
    pass


class AllowMatch(Enum):
    GLOBAL = "global"
    EXACT = "exact"
    PREFIX = "prefix"


@dataclass
class QueryValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)
    reason: str | None = None  # "attribute", "operation" or "depth" when invalid

    def __bool__(self) -> bool:
        return self.valid


# ---- Sanitizing -----------------------------------------------------------------

def remove_dangerous_props(query: Mapping[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in query.items() if k not in DANGEROUS_KEYS}


def _sanitize_value(value: Any, depth: int) -> Any:
    if isinstance(value, Mapping):
        return sanitize(value, depth)
    if isinstance(value, list):
        if depth > MAX_QUERY_DEPTH:
            raise QueryDepthError(f"query nested deeper than {MAX_QUERY_DEPTH} levels")
        return [_sanitize_value(v, depth + 1) for v in value]
    return value


def sanitize(query: Mapping[str, Any], depth: int = 1) -> dict[str, Any]:
    """Return a copy of ``query`` with dangerous keys removed at every depth.

    Raises QueryDepthError when containers nest past ``MAX_QUERY_DEPTH``.
    """
    if depth > MAX_QUERY_DEPTH:
        raise QueryDepthError(f"query nested deeper than {MAX_QUERY_DEPTH} levels")
    return {k: _sanitize_value(v, depth + 1) for k, v in remove_dangerous_props(query).items()}


def strip_operators(query: Mapping[str, Any], allowed_operators: Iterable[str] = ()) -> dict[str, Any]:
    """Drop top-level ``$`` keys that are not allow-listed. Nested keys are kept."""
    allowed = set(allowed_operators)
    return {
        k: v for k, v in query.items()
        if not (str(k).startswith(OPERATOR_PREFIX) and k not in allowed)
    }


def clean(query: Mapping[str, Any], allowed_operators: Iterable[str] = ()) -> dict[str, Any]:
    return strip_operators(sanitize(query), allowed_operators)


# ---- Validation -----------------------------------------------------------------

def match_attribute(key: str, allowed_fields: Iterable[str]) -> AllowMatch | None:
    """Classify how ``key`` is admitted by ``allowed_fields``.

    Precedence is global wildcard, exact entry, then ``prefix.*`` entries.
    A prefix entry admits the prefix itself and any dotted path below it
    (``user.*`` admits ``user`` and ``user.name`` but not ``username``).
    """
    fields = list(allowed_fields)
    if GLOBAL_WILDCARD in fields:
        return AllowMatch.GLOBAL
    if key in fields:
        return AllowMatch.EXACT
    for entry in fields:
        if not entry.endswith(PREFIX_WILDCARD_SUFFIX):
            continue
        prefix = entry[: -len(PREFIX_WILDCARD_SUFFIX)]
        if key == prefix or key.startswith(prefix + "."):
            return AllowMatch.PREFIX
    return None


class _Validator:
    def __init__(self, allowed_fields: Iterable[str], allowed_operators: Iterable[str]):
        self.fields = list(allowed_fields)
        self.operators = set(allowed_operators)
        self.errors: list[str] = []
        self.reason: str | None = None

    def _fail(self, reason: str, message: str) -> bool:
        self.reason = reason
        self.errors.append(message)
        return False

    def query(self, query: Mapping[str, Any]) -> bool:
        # all() stops at the first failing key
        return all(self._top_level(str(k), v) for k, v in query.items())

    def _top_level(self, key: str, value: Any) -> bool:
        if key.startswith(OPERATOR_PREFIX):
            return self._operator(key, value)
        return self._attribute(key, value)

    def _operator(self, key: str, value: Any) -> bool:
        if key not in self.operators or not isinstance(value, list):
            return self._fail("operation", f"Invalid operation: {key}")
        for clause in value:
            if not isinstance(clause, Mapping):
                return self._fail("operation", f"Invalid operation: {key}")
            if not self.query(clause):
                return False
        return True

    def _attribute(self, path: str, value: Any) -> bool:
        if match_attribute(path, self.fields) is None:
            return self._fail("attribute", f"Invalid attribute: {path}")
        if isinstance(value, Mapping):
            for k, v in value.items():
                k = str(k)
                if k.startswith(OPERATOR_PREFIX):
                    # field-level operator such as {"age": {"$gt": 3}}
                    if k not in self.operators:
                        return self._fail("operation", f"Invalid operation: {k}")
                    continue
                if not self._attribute(f"{path}.{k}", v):
                    return False
        return True


def validate_query(
    query: Any,
    allowed_fields: Iterable[str],
    allowed_operators: Iterable[str],
) -> QueryValidation:
    """Validate ``query`` against attribute and operator allow-lists.

    Raises TypeError when ``query`` is not a mapping. Dangerous keys are
    stripped first and never reported. Validation stops at the first
    violation, so ``errors`` holds at most one message. Filters nested past
    ``MAX_QUERY_DEPTH`` are invalid.
    """
    if not isinstance(query, Mapping):
        raise TypeError("query must be an object")
    try:
        sanitized = sanitize(query)
    except QueryDepthError:
        return QueryValidation(valid=False, errors=["Query nested too deeply"], reason="depth")
    validator = _Validator(allowed_fields, allowed_operators)
    valid = validator.query(sanitized)
    return QueryValidation(valid=valid, errors=validator.errors, reason=validator.reason)


def is_valid_query(
    query: Any,
    allowed_fields: Iterable[str],
    allowed_operators: Iterable[str],
) -> bool:
    last_errors.clear()
    result = validate_query(query, allowed_fields, allowed_operators)
    last_errors.extend(result.errors)
    return result.valid
