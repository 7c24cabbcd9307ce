import uuid

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config import settings

logger = structlog.get_logger(__name__)

SECURITY_HEADERS = {
    "X-DNS-Prefetch-Control": "on",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

# Basic bot protection: user agents of well-known scanners
BLOCKED_USER_AGENTS = ("masscan", "nmap", "sqlmap", "nikto", "acunetix")


def is_blocked_user_agent(user_agent: str) -> bool:
    lowered = (user_agent or "").lower()
    return any(pattern in lowered for pattern in BLOCKED_USER_AGENTS)


class EdgeMiddleware(BaseHTTPMiddleware):
    """Request id, security headers, scanner blocking and the www redirect."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        host = request.headers.get("host", "")
        if settings.APP_ENV == "production" and host.startswith("www."):
            target = request.url.replace(netloc=host[len("www."):])
            return RedirectResponse(str(target), status_code=301)

        if is_blocked_user_agent(request.headers.get("user-agent", "")):
            logger.warning("blocked_user_agent", user_agent=request.headers.get("user-agent"))
            response = JSONResponse(status_code=403, content={"error": "Forbidden"})
        else:
            response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        response.headers["X-Request-ID"] = request_id
        return response
