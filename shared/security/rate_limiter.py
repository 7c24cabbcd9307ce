"""Per-client fixed-window rate limiting for the /api routes.

One application-wide window is shared by every API route and keyed by client
address. Counters live in slowapi's in-memory storage, so each process
enforces its own limit; replicas do not coordinate.
"""
import time

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config import settings
from shared.observability import storefront_rate_limited_total

logger = structlog.get_logger(__name__)

API_PREFIX = "/api/"


def client_address(request: Request) -> str:
    """
    Key function for SlowAPI.
    Uses the first X-Forwarded-For hop when the app sits behind a proxy,
    otherwise the socket peer address.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request) or "anonymous"


def application_limit() -> str:
    # Evaluated per request so the window follows the current settings
    return f"{settings.RATE_LIMIT_MAX_REQUESTS} per {settings.RATE_LIMIT_WINDOW_SECONDS} seconds"


def build_limiter() -> Limiter:
    return Limiter(
        key_func=client_address,
        application_limits=[application_limit],
        strategy="fixed-window",
        headers_enabled=True,
    )


limiter = build_limiter()


def window_stats(request: Request) -> tuple[float, int] | None:
    """Reset time and remaining hits of the window slowapi matched for this request.

    slowapi (>=0.1.9) records the matched limit and its key in
    ``request.state.view_rate_limit``; the counters are read back through the
    public ``limits`` strategy API.
    """
    current = getattr(request.state, "view_rate_limit", None)
    if current is None:
        return None
    limit_item, identifiers = current
    reset_at, remaining = request.app.state.limiter.limiter.get_window_stats(limit_item, *identifiers)
    return reset_at, remaining


def rate_limit_headers(request: Request) -> dict[str, str]:
    stats = window_stats(request)
    if stats is None:
        return {}
    limit_item, _identifiers = request.state.view_rate_limit
    reset_at, remaining = stats
    return {
        "X-RateLimit-Limit": str(limit_item.amount),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(int(reset_at)),
    }


def seconds_until_reset(request: Request) -> int:
    stats = window_stats(request)
    if stats is None:
        return settings.RATE_LIMIT_WINDOW_SECONDS
    return max(1, int(stats[0] - time.time()))


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Must stay sync: SlowAPIMiddleware calls the registered handler without awaiting it."""
    retry_after = seconds_until_reset(request)
    storefront_rate_limited_total.inc()
    logger.warning("rate_limited", client=client_address(request), path=request.url.path)

    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests",
            "message": "You have exceeded the rate limit. Please try again later.",
            "retryAfter": retry_after,
        },
        headers={**rate_limit_headers(request), "Retry-After": str(retry_after)},
    )


def exempt_non_api_routes(app: FastAPI, rate_limiter: Limiter) -> None:
    """Keeps /metrics, the docs and anything else outside /api out of the window."""
    for route in app.routes:
        path = getattr(route, "path", "")
        endpoint = getattr(route, "endpoint", None)
        if endpoint is not None and not path.startswith(API_PREFIX):
            rate_limiter.exempt(endpoint)
