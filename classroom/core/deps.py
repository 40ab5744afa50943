"""
FastAPI dependencies for authentication.

WHY: Dependencies provide reusable session resolution that can be injected
into route handlers. Authorization decisions are not made here; routers pass
the resolved Identity to classroom.core.policy explicitly.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.auth import verify_token, is_token_blacklisted
from classroom.core.config import settings
from classroom.core.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    TokenInvalidError,
)
from classroom.core.policy import Identity
from classroom.db.session import get_db
from classroom.models.user import User
from classroom.dao.user import UserDAO


# HTTP Bearer token security scheme
# WHY: auto_error=False lets the session cookie act as a fallback when the
# Authorization header is absent.
security = HTTPBearer(auto_error=False)


def get_session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """
    Extract the session token from the Authorization header or cookie.

    Returns:
        Raw token string, or None for anonymous requests
    """
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user from the session token.

    WHY: This dependency:
    1. Verifies token signature and expiration
    2. Checks if token is blacklisted (signed out)
    3. Fetches user from database (token claims might be stale)

    Raises:
        AuthenticationError: If token is missing, invalid, expired, or user not found
    """
    if not token:
        raise AuthenticationError(message="Authentication required")

    try:
        payload = verify_token(token)
    except (TokenExpiredError, TokenInvalidError) as e:
        # WHY: Re-raise as AuthenticationError for consistent API responses
        raise AuthenticationError(
            message=str(e),
            status_code=e.status_code,
        )

    if await is_token_blacklisted(token):
        raise AuthenticationError(
            message="Token has been revoked",
            reason="signed_out",
        )

    user_id: Optional[str] = payload.get("user_id")
    if not user_id:
        raise AuthenticationError(message="Invalid token: missing user_id")

    user_dao = UserDAO(User, db)
    user = await user_dao.get_by_id(user_id)

    if not user:
        # WHY: User might have been deleted after token was issued
        raise AuthenticationError(
            message="User not found",
            user_id=user_id,
        )

    return user


async def get_current_identity(
    current_user: User = Depends(get_current_user),
) -> Identity:
    """
    Resolve the caller's Identity.

    WHY: Role and organization are read from the user row rather than the
    token, so an admin's role change takes effect on the next request.
    """
    return Identity.from_user(current_user)

