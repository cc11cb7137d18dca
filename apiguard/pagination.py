from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any, Generic, Literal, TypeVar

from typing_extensions import TypedDict

T = TypeVar("T")

__all__ = [
    "PaginationRequest",
    "PaginationLimits",
    "PaginationResult",
    "PageMeta",
    "PageResponse",
    "parse_integer",
    "normalize_pagination",
    "limits_from_config",
    "paginate",
    "make_page_response",
]

# ---- Contracts -----------------------------------------------------------------

class PaginationRequest(TypedDict, total=False):
    offset: int | str | None
    count: int | str | None


class PaginationLimits(TypedDict):
    upper_limit: int
    default_count: int
    allow_infinite: bool


class PaginationResult(TypedDict):
    offset: int  # zero-based skip
    count: int  # page size; 0 only when infinite counts are allowed


class PageMeta(TypedDict):
    offset: int
    count: int
    total: int


class PageResponse(TypedDict, Generic[T]):  # type: ignore[misc]
    ok: Literal[True]
    items: list[T]
    meta: PageMeta


HARD_UPPER_FLOOR = 100
DEFAULT_COUNT_FLOOR = 50

_INT_PREFIX = re.compile(r"\s*([+-]?)([0-9]+)")
# longer digit runs saturate instead of being converted
_MAX_DIGITS = 18
_SATURATED = 2**63 - 1


def parse_integer(value: Any) -> int | None:
    """Leniently parse a query value as an integer.

    Leading whitespace and a sign are accepted and trailing garbage is ignored
    (``"12abc"`` -> 12). Only ASCII digits count; runs too long to convert
    saturate to a huge value of the same sign. Floats truncate toward zero.
    Returns None when no integer can be read (None, booleans, empty or
    non-numeric strings, NaN).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    m = _INT_PREFIX.match(str(value))
    if not m:
        return None
    sign, digits = m.groups()
    digits = digits.lstrip("0") or "0"
    magnitude = _SATURATED if len(digits) > _MAX_DIGITS else int(digits)
    return -magnitude if sign == "-" else magnitude


def normalize_pagination(params: PaginationRequest | Mapping[str, Any], limits: Mapping[str, Any]) -> PaginationResult:
    """Derive a safe (offset, count) pair from raw request values.

    Configured limits below the floors (100 upper, 50 default) are lifted to
    the floors. Unparseable input degrades to defaults; nothing is raised.
    A negative offset that parses is returned unchanged.
    """
    hard_upper_limit = max(limits.get("upper_limit") or HARD_UPPER_FLOOR, HARD_UPPER_FLOOR)
    default_count = max(limits.get("default_count") or DEFAULT_COUNT_FLOOR, DEFAULT_COUNT_FLOOR)

    offset = parse_integer(params.get("offset"))
    if offset is None:
        offset = 0

    count = parse_integer(params.get("count"))
    if count is None:
        count = default_count

    if count == 0 and not limits.get("allow_infinite"):
        count = default_count

    count = min(count, hard_upper_limit)

    return PaginationResult(offset=offset, count=count)


def limits_from_config(config: Mapping[str, Any]) -> PaginationLimits:
    """Snapshot pagination limits from a Flask config mapping."""
    return PaginationLimits(
        upper_limit=config.get("API_UPPER_COUNT_LIMIT") or HARD_UPPER_FLOOR,
        default_count=config.get("API_DEFAULT_COUNT") or DEFAULT_COUNT_FLOOR,
        allow_infinite=bool(config.get("API_ALLOW_INFINITE_COUNT")),
    )


def paginate(items: Sequence[T], count: int = 10, offset: int = 0) -> list[T]:
    start = max(offset, 0)
    if count < 0:
        return []
    if count == 0:  # unbounded page
        return list(items[start:])
    return list(items[start:start + count])


def make_page_response(items: Sequence[T], page: PaginationResult, total: int) -> PageResponse[T]:
    return PageResponse(  # type: ignore[call-arg]
        ok=True,
        items=list(items),
        meta=PageMeta(
            offset=page["offset"],
            count=page["count"],
            total=total,
        ),
    )
