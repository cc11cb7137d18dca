from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def projection_allows_attribute(attribute: str, options: Mapping[str, Any] | None = None) -> bool:
    """Return True if a find-style ``projection`` would include ``attribute``.

    An explicit 1/0 for the attribute wins. Otherwise an inclusion projection
    (any field set to 1) leaves the attribute out, while an exclusion-only or
    empty projection keeps it.
    """
    if not options or not options.get("projection"):
        return True

    projection = options["projection"]
    if projection.get(attribute) == 1:
        return True
    if projection.get(attribute) == 0:
        return False

    return not any(v == 1 for v in projection.values())


__all__ = ["projection_allows_attribute"]
