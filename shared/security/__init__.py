from .jwt_handler import verify_access_token
from .dependencies import AuthenticatedUser, get_current_user
from .rate_limiter import limiter, client_address, rate_limit_exceeded_handler, exempt_non_api_routes
from .middleware import EdgeMiddleware

__all__ = [
    "verify_access_token",
    "AuthenticatedUser",
    "get_current_user",
    "limiter",
    "client_address",
    "rate_limit_exceeded_handler",
    "exempt_non_api_routes",
    "EdgeMiddleware"
]
