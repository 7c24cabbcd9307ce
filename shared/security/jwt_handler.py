from jose import JWTError, jwt

from shared.config import settings


def verify_access_token(token: str) -> dict | None:
    """Decodes and verifies an auth-provider access token.

    Returns the claims if the signature and expiry check out, None otherwise.
    The provider's audience claim is not pinned.
    """
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            options={"verify_aud": False},
        )
        return payload
    except JWTError:
        return None
