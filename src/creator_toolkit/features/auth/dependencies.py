"""FastAPI dependency functions for authentication."""

from fastapi import Depends, Header, HTTPException

from creator_toolkit.features.auth import jwt as app_jwt
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)

ADMIN_ROLE = "admin"


def get_current_user(authorization: str = Header(default="")) -> dict:
    """Extract and validate the Supabase JWT from the Authorization header.

    Usage::

        @router.get("/protected")
        def endpoint(user: dict = Depends(get_current_user)):
            user_id = user["sub"]

    Raises:
        HTTPException(401): If the token is missing, invalid, or expired.
    """
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="Missing or invalid Authorization header",
        )
    token = authorization.removeprefix("Bearer ").strip()

    try:
        return app_jwt.decode_access_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc))


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    """Allow only users whose ``app_metadata.role`` is admin.

    Raises:
        HTTPException(403): If the user is not an admin.
    """
    role = (user.get("app_metadata") or {}).get("role")
    if role != ADMIN_ROLE:
        logger.warning("admin_required", user_id=user.get("sub"), role=role)
        raise HTTPException(status_code=403, detail="Admin role required")
    return user
