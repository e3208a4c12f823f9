"""Verify Supabase access tokens and mint development tokens.

Supabase signs user sessions with the project's JWT secret (HS256) and the
``authenticated`` audience. ``create_access_token`` produces tokens of the
same shape for local development and tests.
"""

import time
from typing import Any

import jwt

from creator_toolkit.platform.config import get_settings
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)

_ALGORITHM = "HS256"
_AUDIENCE = "authenticated"

# Token lifetime: 1 hour, as issued by Supabase Auth
_TOKEN_LIFETIME_SECONDS = 60 * 60


def _get_secret() -> str:
    """Return the JWT secret.

    In development mode (ENV=development) a fixed secret is used when
    SUPABASE_JWT_SECRET is not set. In production it is required.
    """
    settings = get_settings()
    if settings.supabase_jwt_secret:
        return settings.supabase_jwt_secret

    if settings.env == "development":
        logger.warning(
            "jwt_secret_missing_using_dev_default",
            hint="Set SUPABASE_JWT_SECRET in .env for production",
        )
        return "creator-toolkit-dev-secret-do-not-use-in-prod"

    raise RuntimeError("SUPABASE_JWT_SECRET environment variable is required in production.")


def create_access_token(
    user_id: str,
    email: str | None = None,
    role: str | None = None,
    lifetime_seconds: int = _TOKEN_LIFETIME_SECONDS,
) -> str:
    """Create a Supabase-shaped JWT for the given user.

    Args:
        user_id: Supabase user id (becomes the ``sub`` claim).
        email: Optional email claim.
        role: Optional application role, stored in ``app_metadata.role``.
        lifetime_seconds: Seconds until expiry.

    Returns:
        Encoded JWT string.
    """
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": user_id,
        "aud": _AUDIENCE,
        "role": "authenticated",
        "email": email,
        "app_metadata": {"role": role} if role else {},
        "iat": now,
        "exp": now + lifetime_seconds,
    }
    token = jwt.encode(payload, _get_secret(), algorithm=_ALGORITHM)
    logger.debug("jwt_created", user_id=user_id)
    return token


def decode_access_token(token: str) -> dict:
    """Verify and decode a JWT.

    Raises:
        ValueError: If the token is invalid, expired, or has a bad signature.
    """
    try:
        return jwt.decode(token, _get_secret(), algorithms=[_ALGORITHM], audience=_AUDIENCE)
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except jwt.InvalidTokenError as exc:
        raise ValueError(f"Invalid token: {exc}")
