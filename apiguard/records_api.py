"""Records API: filtered, paginated listing over an in-memory record set.

Query string:
- ``offset`` / ``count``: normalized with the configured pagination limits.
- ``query``: JSON filter object checked against ``QUERY_ALLOWED_FIELDS`` and
  ``QUERY_ALLOWED_OPERATORS``; rejected filters answer 422.
- ``fields``: optional JSON projection (``{"name": 1}`` / ``{"secret": 0}``).

Records are read from ``app.config["RECORDS"]`` (list of dicts).
"""

from __future__ import annotations

import json
import logging
import operator
from collections.abc import Callable, Mapping
from typing import Any

from flask import Blueprint, current_app, g, jsonify, request

from .errors import BadRequestError, ValidationError
from .metrics import increment as metrics_increment
from .pagination import limits_from_config, make_page_response, normalize_pagination, paginate
from .projection import projection_allows_attribute
from .query_guard import clean, validate_query

bp = Blueprint("records_api", __name__, url_prefix="/api")
log = logging.getLogger("apiguard.records")

_MISSING = object()

_FIELD_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "$eq": operator.eq,
    "$ne": operator.ne,
    "$gt": lambda a, b: a is not _MISSING and a > b,
    "$gte": lambda a, b: a is not _MISSING and a >= b,
    "$lt": lambda a, b: a is not _MISSING and a < b,
    "$lte": lambda a, b: a is not _MISSING and a <= b,
    "$in": lambda a, b: a in b,
    "$nin": lambda a, b: a not in b,
}


def _json_arg(name: str) -> Any:
    """Decode a JSON query parameter; _MISSING when absent or blank."""
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return _MISSING
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise BadRequestError(f"{name} must be valid JSON") from e


def _match_value(actual: Any, expected: Any) -> bool:
    if isinstance(expected, Mapping):
        ops = {k: v for k, v in expected.items() if str(k).startswith("$")}
        if ops:
            for op, operand in ops.items():
                fn = _FIELD_OPS.get(op)
                if fn is None:
                    raise BadRequestError(f"unsupported operation: {op}")
                try:
                    if not fn(actual, operand):
                        return False
                except TypeError:  # incomparable types never match
                    return False
            return True
        if not isinstance(actual, Mapping):
            return False
        return all(_match_value(actual.get(k, _MISSING), v) for k, v in expected.items())
    return actual == expected


def matches(record: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    for key, expected in query.items():
        if key == "$or":
            if not any(matches(record, clause) for clause in expected):
                return False
        elif key == "$and":
            if not all(matches(record, clause) for clause in expected):
                return False
        elif key.startswith("$"):
            raise BadRequestError(f"unsupported operation: {key}")
        elif not _match_value(record.get(key, _MISSING), expected):
            return False
    return True


def _project(record: Mapping[str, Any], projection: Mapping[str, Any] | None) -> dict[str, Any]:
    options = {"projection": projection}
    return {k: v for k, v in record.items() if projection_allows_attribute(k, options)}


@bp.get("/records")
def list_records():
    cfg = current_app.config
    page = normalize_pagination(request.args, limits_from_config(cfg))
    query = _json_arg("query")
    if query is _MISSING:
        query = {}
    allowed_fields = cfg.get("QUERY_ALLOWED_FIELDS") or []
    allowed_operators = cfg.get("QUERY_ALLOWED_OPERATORS") or []
    try:
        result = validate_query(query, allowed_fields, allowed_operators)
    except TypeError as e:
        raise BadRequestError(str(e)) from e
    if not result.valid:
        log.warning(
            "Rejected query from %s: %s", getattr(g, "client_ip", "-"), "; ".join(result.errors)
        )
        metrics_increment("query_guard.rejected", {"reason": result.reason or "unknown"})
        raise ValidationError(result.errors, detail="invalid_query")

    projection = _json_arg("fields")
    if projection is _MISSING:
        projection = None
    elif not isinstance(projection, Mapping):
        raise BadRequestError("fields must be an object")

    filt = clean(query, allowed_operators)
    matched = [r for r in cfg.get("RECORDS") or [] if matches(r, filt)]
    items = paginate(matched, page["count"], page["offset"])
    return jsonify(make_page_response([_project(r, projection) for r in items], page, len(matched)))


@bp.get("/client-address")
def client_address():
    return jsonify({"client_ip": getattr(g, "client_ip", None)})


__all__ = ["bp", "matches"]
