"""
Session token and password hashing utilities.

WHY: This module provides secure authentication functionality:
1. Password hashing with bcrypt (OWASP A07: Authentication Failures)
2. Session token (JWT) issuance and verification
3. Token blacklist for sign-out
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
from jose import jwt, JWTError
from passlib.context import CryptContext
import redis.asyncio as aioredis

from classroom.core.config import settings
from classroom.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
)

logger = logging.getLogger(__name__)


# Password hashing context
# WHY: bcrypt with default cost factor (12 rounds) provides strong protection
# against brute-force attacks while maintaining acceptable performance.
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# Redis connection for token blacklist
# WHY: Redis provides fast in-memory storage for revoked tokens,
# allowing sub-millisecond lookups on every request without database load.
_redis_client: Optional[aioredis.Redis] = None


async def get_redis() -> aioredis.Redis:
    """
    Get Redis client shared by the token blacklist and the rate limiter.

    WHY: Lazy initialization ensures Redis is only connected when needed,
    and connection is reused across requests for performance.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


# ============================================================================
# Password Hashing
# ============================================================================


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Hashed password (60 characters, includes salt and cost factor)
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a password against its hash.

    WHY: Constant-time comparison (built into passlib) prevents timing
    attacks. Accounts without a stored credential never verify.

    Args:
        plain_password: Password provided by user
        hashed_password: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


# ============================================================================
# Session Tokens
# ============================================================================


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed session token.

    WHY: The token carries the identity triple (user_id, org_id, role) so
    the rate limiter can classify a request without a database hit. The
    user row is still re-read on every authenticated request.

    Args:
        data: Claims to encode (user_id, org_id, role)
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.SESSION_EXPIRATION_MINUTES)

    to_encode.update(
        {
            "exp": expire,
            "iat": now,
            "nbf": now,
        }
    )

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def create_session_token(user) -> str:
    """Issue a session token for a user row."""
    return create_access_token(
        {
            "user_id": user.id,
            "org_id": user.organization_id,
            "role": user.role.value,
        }
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed or signature invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )

    except jwt.ExpiredSignatureError:
        raise TokenExpiredError(message="Token has expired")

    except JWTError as e:
        raise TokenInvalidError(
            message="Invalid token",
            error=str(e),
        )


def token_expiry(payload: Dict[str, Any]) -> Optional[datetime]:
    """Return the expiry of a decoded token as an aware UTC datetime."""
    exp_timestamp = payload.get("exp")
    if exp_timestamp is None:
        return None
    return datetime.fromtimestamp(exp_timestamp, tz=timezone.utc)


# ============================================================================
# Token Blacklist (Sign-out)
# ============================================================================


async def blacklist_token(
    token: str,
    user_id: str,
    ttl_seconds: Optional[int] = None,
) -> None:
    """
    Add a token to the blacklist.

    WHY: Signed tokens are stateless and can't be "deleted". Blacklisting
    prevents a token from being used even if it hasn't expired yet.

    Args:
        token: Session token to revoke
        user_id: User ID stored alongside for audit
        ttl_seconds: Optional TTL (defaults to the token's remaining lifetime)
    """
    redis = await get_redis()

    # WHY: No need to keep blacklist entries longer than token lifetime
    if ttl_seconds is None:
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM],
                options={"verify_signature": False, "verify_exp": False},
            )
            exp_timestamp = payload.get("exp")
            if exp_timestamp:
                ttl_seconds = max(
                    int(exp_timestamp - datetime.now(timezone.utc).timestamp()),
                    1,
                )
            else:
                ttl_seconds = settings.SESSION_EXPIRATION_MINUTES * 60
        except JWTError:
            ttl_seconds = settings.SESSION_EXPIRATION_MINUTES * 60

    await redis.setex(
        f"blacklist:token:{token}",
        ttl_seconds,
        str(user_id),
    )
    logger.info("Session revoked for user %s", user_id)


async def is_token_blacklisted(token: str) -> bool:
    """Check if a token has been revoked."""
    redis = await get_redis()
    exists = await redis.exists(f"blacklist:token:{token}")
    return exists > 0
