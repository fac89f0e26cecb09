"""
Authentication Dependencies

Turns the Bearer token on an inbound request into an explicit AuthContext.
The context is produced once per request and passed by parameter into the
authorization guard and every service operation.
"""

import logging
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from admissions.core.authorization import REASON_ADMIN_REQUIRED, AuthContext, Role
from admissions.core.security import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def auth_context_from_token(token: str) -> AuthContext:
    """
    Validate a JWT and extract the principal.

    Args:
        token: Raw JWT string

    Returns:
        AuthContext built from the token claims

    Raises:
        HTTPException 401: If the token is invalid, expired or malformed
    """
    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")
        return AuthContext(
            id=UUID(user_id_str),
            role=Role(payload.get("role", "")),
            email=payload.get("email"),
        )
    except (ValueError, KeyError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AuthContext:
    """
    FastAPI dependency returning the authenticated principal.

    Raises:
        HTTPException 401: If no token is supplied or it is invalid
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("NOT_AUTHENTICATED", "Access denied. No token provided.")

    principal = auth_context_from_token(credentials.credentials)
    logger.debug(f"Authenticated principal: {principal.id} ({principal.role.value})")
    return principal


async def require_admin(
    principal: AuthContext = Depends(get_auth_context),
) -> AuthContext:
    """
    FastAPI dependency that only admits admin principals.

    Raises:
        HTTPException 403: If the principal is not an admin
    """
    if not principal.is_admin:
        logger.warning(f"Access denied: user {principal.id} has role '{principal.role.value}'")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "FORBIDDEN", "message": REASON_ADMIN_REQUIRED},
        )
    return principal


__all__ = [
    "auth_context_from_token",
    "get_auth_context",
    "require_admin",
]
