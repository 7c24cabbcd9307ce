from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from shared.config import settings
from shared.errors import NotAuthenticatedError, ServiceUnavailableError
from .jwt_handler import verify_access_token

# Defines the expected header format (Bearer <token>)
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str | None
    name: str | None


def user_from_claims(payload: dict) -> AuthenticatedUser | None:
    user_id = payload.get("sub")
    if not user_id:
        return None
    email = payload.get("email")
    metadata = payload.get("user_metadata") or {}
    return AuthenticatedUser(
        id=str(user_id),
        email=email,
        name=metadata.get("full_name") or email,
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """Dependency to validate the bearer token and return the signed-in user."""
    if not settings.AUTH_JWT_SECRET:
        raise ServiceUnavailableError("Authentication is not configured")

    if credentials is None or not credentials.credentials:
        raise NotAuthenticatedError("Unauthorized - Please sign in to continue")

    payload = verify_access_token(credentials.credentials)
    if payload is None:
        raise NotAuthenticatedError("Unauthorized - Please sign in to continue")

    user = user_from_claims(payload)
    if user is None:
        raise NotAuthenticatedError("Unauthorized - Please sign in to continue")

    # Store in request state for downstream use (logging, auditing)
    request.state.user_id = user.id
    return user
