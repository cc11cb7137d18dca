"""Client address resolution behind reverse proxies.

Resolution order (first match wins):
1. ``X-Real-IP`` when present and non-empty, verbatim.
2. ``X-Forwarded-For`` walked back ``hop_count`` trusted proxies from the
   right. With no trusted hops, or more hops than entries, the transport
   address is used instead (leftmost entry when the transport has none).
3. Transport socket address, then connection address.
4. ``127.0.0.1``.

The result is not validated as an IP address; it is meant for rate limit
keys and audit logs.

Configure the number of trusted proxies with ``HTTP_FORWARDED_COUNT``.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from flask import Flask, current_app, g, request
from typing_extensions import TypedDict
from werkzeug.datastructures import Headers

from .metrics import increment as metrics_increment

__all__ = [
    "LOOPBACK",
    "Transport",
    "forwarded_hop_count_from_env",
    "resolve_client_address",
    "transport_from_environ",
    "init_remote_address",
]

LOOPBACK = "127.0.0.1"


class Transport(TypedDict, total=False):
    socket_remote_address: str | None
    connection_remote_address: str | None


def forwarded_hop_count_from_env() -> int:
    try:
        hops = int(os.getenv("HTTP_FORWARDED_COUNT", "0"))
    except ValueError:
        return 0
    return max(hops, 0)


def _header(headers: Headers | Mapping[str, Any] | None, name: str) -> Any:
    # repeated headers are folded into one comma separated value
    if isinstance(headers, Headers):
        values = headers.getlist(name)
        return ", ".join(values) if values else None
    for key, value in (headers or {}).items():
        if str(key).lower() != name:
            continue
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v) for v in value) if value else None
        return value
    return None


def _transport_address(transport: Transport | None) -> str | None:
    if not transport:
        return None
    return transport.get("socket_remote_address") or transport.get("connection_remote_address")


def _resolve(
    headers: Headers | Mapping[str, Any] | None,
    transport: Transport | None,
    hops: int,
) -> tuple[str, str]:
    real_ip = _header(headers, "x-real-ip")
    if real_ip:
        return str(real_ip), "x-real-ip"

    forwarded = _header(headers, "x-forwarded-for")
    if forwarded is not None and forwarded != "":
        entries = [e.strip() for e in str(forwarded).split(",")]
        entries = [e for e in entries if e]
        if entries:
            if 0 < hops <= len(entries):
                return entries[len(entries) - hops], "x-forwarded-for"
            own = _transport_address(transport)
            if own:
                return str(own), "transport"
            return entries[0], "x-forwarded-for"

    if transport:
        if transport.get("socket_remote_address"):
            return str(transport["socket_remote_address"]), "socket"
        if transport.get("connection_remote_address"):
            return str(transport["connection_remote_address"]), "connection"
    return LOOPBACK, "default"


def resolve_client_address(
    headers: Headers | Mapping[str, Any] | None,
    transport: Transport | None = None,
    forwarded_hop_count: int | None = None,
) -> str:
    """Return the originating client address for a request.

    ``forwarded_hop_count`` is the number of trusted proxies; when None it is
    read from ``HTTP_FORWARDED_COUNT`` at call time.
    """
    hops = forwarded_hop_count_from_env() if forwarded_hop_count is None else forwarded_hop_count
    address, _source = _resolve(headers, transport, hops)
    return address


def transport_from_environ(environ: Mapping[str, Any]) -> Transport:
    return Transport(socket_remote_address=environ.get("REMOTE_ADDR"))


def init_remote_address(app: Flask) -> None:
    """Store the resolved client address on ``g.client_ip`` for every request."""

    @app.before_request
    def _resolve_remote_address() -> None:
        hops = current_app.config.get("HTTP_FORWARDED_COUNT")
        if hops is None:
            hops = forwarded_hop_count_from_env()
        address, source = _resolve(request.headers, transport_from_environ(request.environ), int(hops))
        g.client_ip = address
        metrics_increment("remote_address.resolved", {"source": source})
