"""Authentication dependencies for FastAPI routes.

Every failure (missing header, bad token) is reported as the same
``{"error": "Unauthorized"}`` body.
"""

from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from estimate_export.core.exceptions import UnauthorizedError
from estimate_export.core.jwt import jwt_verifier
from estimate_export.schemas.auth import CurrentUser
from estimate_export.utils.logging import get_logger

LOGGER = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CurrentUser:
    """Get the current authenticated user from the bearer token.

    Args:
        credentials: HTTP Authorization credentials (automatically injected)

    Returns:
        CurrentUser: Authenticated user information

    Raises:
        UnauthorizedError: If the token is missing, invalid or expired
    """
    if not credentials or not credentials.credentials:
        LOGGER.warning("No authorization credentials provided")
        raise UnauthorizedError()

    try:
        claims = await jwt_verifier.verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise UnauthorizedError() from e

    user_metadata = claims.user_metadata or {}
    user = CurrentUser(
        id=claims.sub,
        email=claims.email,
        role=claims.role or "user",
        full_name=user_metadata.get("full_name"),
    )

    LOGGER.debug(f"Authenticated user: {user.id} ({user.email})")
    return user
