"""
Per-client rate limiting for /api/ routes.

Uses slowapi (a Starlette wrapper around the `limits` library) with the
in-memory fixed-window strategy. The memory storage locks per key, so
concurrent requests from one client never lose an increment and unrelated
clients do not contend.
"""
from __future__ import annotations

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

# Every /api/ route draws from the same per-client counter.
API_SCOPE = "api"


def client_address(request: Request) -> str:
    """Client identity: peer address, or the first X-Forwarded-For hop when trusted."""
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


def create_limiter() -> Limiter:
    """Fresh limiter with its own empty in-memory table."""
    return Limiter(
        key_func=client_address,
        storage_uri="memory://",
        strategy="fixed-window",
    )
