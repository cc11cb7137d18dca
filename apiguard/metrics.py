from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

logger = logging.getLogger("metrics")


class Metrics(Protocol):
    def increment(self, name: str, tags: Mapping[str, str] | None = None) -> None: ...  # pragma: no cover - interface only


class NoopMetrics:
    def increment(self, name: str, tags: Mapping[str, str] | None = None) -> None:  # pragma: no cover - noop
        return


class LoggingMetrics:
    def increment(self, name: str, tags: Mapping[str, str] | None = None) -> None:
        ordered = dict(sorted((tags or {}).items()))
        logger.info("metric name=%s tags=%s", name, ordered)


_BACKENDS = {"noop": NoopMetrics, "log": LoggingMetrics}

_metrics: Metrics = NoopMetrics()


def set_metrics(m: Metrics) -> None:
    global _metrics
    _metrics = m


def configure_metrics(backend: str | None) -> Metrics:
    """Install the named backend ("noop" or "log"); unknown names fall back to noop."""
    factory = _BACKENDS.get((backend or "noop").lower(), NoopMetrics)
    m = factory()
    set_metrics(m)
    return m


def increment(name: str, tags: Mapping[str, str] | None = None) -> None:
    _metrics.increment(name, tags)
