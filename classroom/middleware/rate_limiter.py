"""
Rate limiting middleware.

WHAT: Fixed-window request limits for the API, stored in Redis.

WHY: Two kinds of limits apply:
1. Identity endpoints (sign-in, sign-up) are limited per client IP to slow
   down credential stuffing and mass sign-ups
2. Every other /api path is limited per caller, with a budget that depends
   on the caller's role (admin, teacher, student, or guest when there is no
   valid session)

HOW: Each request increments a counter keyed by bucket and identifier:
1. INCR + EXPIRE run in one pipeline
2. The counter expires after the window
3. Over the limit, the request is answered with 429 and Retry-After
4. X-RateLimit-* headers are added to every limited response

Design decisions:
- Fail-open: if Redis is unavailable, requests are allowed
- The role is read from the session token without touching the database
- Disabled entirely with RATE_LIMIT_ENABLED=false
"""

from dataclasses import dataclass
from typing import Optional, Dict, Tuple
import logging
import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from classroom.core.auth import verify_token
from classroom.core.config import settings
from classroom.core.exceptions import AuthenticationError, RateLimitExceeded


logger = logging.getLogger(__name__)

GUEST_ROLE = "guest"


# ============================================================================
# Configuration
# ============================================================================


@dataclass
class RateLimitConfig:
    """
    Configuration for one rate limit bucket.

    WHY: Sign-in is stricter (5/min) than sign-up (10/min), and signed-in
    roles get larger budgets than anonymous callers.
    """

    requests_per_window: int = 5
    """Maximum number of requests allowed in the window."""

    window_seconds: int = 60
    """Duration of the rate limit window in seconds."""

    key_prefix: str = "ratelimit"
    """Redis key prefix for the counters of this bucket."""


def auth_rate_limits() -> Dict[str, RateLimitConfig]:
    """Per-IP limits for the identity endpoints, keyed by full path."""
    prefix = f"{settings.API_V1_PREFIX}/auth"
    window = settings.RATE_LIMIT_WINDOW_SECONDS
    return {
        f"{prefix}/sign-in/email": RateLimitConfig(
            requests_per_window=settings.RATE_LIMIT_SIGN_IN,
            window_seconds=window,
            key_prefix="ratelimit:sign-in",
        ),
        f"{prefix}/sign-up/email": RateLimitConfig(
            requests_per_window=settings.RATE_LIMIT_SIGN_UP,
            window_seconds=window,
            key_prefix="ratelimit:sign-up",
        ),
    }


def role_rate_limits() -> Dict[str, RateLimitConfig]:
    """Per-caller limits for every other API path, keyed by role."""
    window = settings.RATE_LIMIT_WINDOW_SECONDS
    limits = {
        "admin": settings.RATE_LIMIT_ADMIN,
        "teacher": settings.RATE_LIMIT_TEACHER,
        "student": settings.RATE_LIMIT_STUDENT,
        GUEST_ROLE: settings.RATE_LIMIT_GUEST,
    }
    return {
        role: RateLimitConfig(
            requests_per_window=limit,
            window_seconds=window,
            key_prefix=f"ratelimit:{role}",
        )
        for role, limit in limits.items()
    }


# ============================================================================
# Rate Limit Result
# ============================================================================


@dataclass
class RateLimitResult:
    """
    Result of a rate limit check.

    WHY: Carries everything needed to decide and to set the response
    headers (X-RateLimit-Limit, X-RateLimit-Remaining, Retry-After).
    """

    allowed: bool
    """Whether the request is allowed (under limit)."""

    remaining: int
    """Requests remaining in the current window (-1 when unknown)."""

    reset_after: int
    """Seconds until the window resets."""

    limit: int
    """Maximum requests allowed per window."""


# ============================================================================
# Rate Limiter Service
# ============================================================================


class RateLimiter:
    """
    Rate limiter service using Redis.

    WHAT: Fixed-window counting with INCR and EXPIRE.

    WHY: Redis counters are shared by every app instance and expire on
    their own, so nothing needs cleaning up.

    HOW: The config is passed per check, so one limiter (and one Redis
    connection) serves every bucket.
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        config: Optional[RateLimitConfig] = None,
    ):
        """
        Args:
            redis_client: Async Redis client
            config: Default configuration when a check doesn't pass one
        """
        self._redis = redis_client
        self._config = config or RateLimitConfig()

    def _build_key(self, identifier: str, endpoint: str, config: RateLimitConfig) -> str:
        """
        Build the Redis key for a counter.

        HOW: Format: {prefix}:{endpoint_normalized}:{identifier}
        """
        normalized_endpoint = endpoint.strip("/").replace("/", ":")
        return f"{config.key_prefix}:{normalized_endpoint}:{identifier}"

    async def check_rate_limit(
        self,
        identifier: str,
        endpoint: str,
        config: Optional[RateLimitConfig] = None,
    ) -> RateLimitResult:
        """
        Count a request and compare against the limit.

        Args:
            identifier: Client IP or user id
            endpoint: Counter scope (a path, or a role bucket name)
            config: Bucket configuration, defaults to the limiter's own

        Returns:
            RateLimitResult with allowed status and metadata
        """
        config = config or self._config
        key = self._build_key(identifier, endpoint, config)

        try:
            pipe = self._redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, config.window_seconds)

            results = await pipe.execute()
            current_count = results[0]

            return RateLimitResult(
                allowed=current_count <= config.requests_per_window,
                remaining=max(0, config.requests_per_window - current_count),
                reset_after=config.window_seconds,
                limit=config.requests_per_window,
            )

        except (RedisError, OSError) as e:
            # Fail-open
            logger.error(
                "Rate limit Redis error (allowing request): %s",
                e,
                extra={"identifier": identifier, "endpoint": endpoint},
            )
            return RateLimitResult(
                allowed=True,
                remaining=-1,
                reset_after=config.window_seconds,
                limit=config.requests_per_window,
            )


# ============================================================================
# Global Rate Limiter Instance
# ============================================================================


_rate_limiter: Optional[RateLimiter] = None


async def get_rate_limiter() -> RateLimiter:
    """
    Get or create the global rate limiter.

    WHY: One Redis connection for all rate limiting; tests replace this
    function to inject a mock limiter.
    """
    global _rate_limiter

    if _rate_limiter is None:
        redis_client = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
        _rate_limiter = RateLimiter(redis_client=redis_client)

    return _rate_limiter


async def check_rate_limit(
    identifier: str,
    endpoint: str,
    config: Optional[RateLimitConfig] = None,
) -> RateLimitResult:
    """
    Check a rate limit and raise if exceeded.

    Raises:
        RateLimitExceeded: If rate limit is exceeded (429)
    """
    limiter = await get_rate_limiter()

    if config is None:
        config = auth_rate_limits().get(endpoint)

    result = await limiter.check_rate_limit(identifier, endpoint, config=config)

    if not result.allowed:
        raise RateLimitExceeded(
            message=f"Rate limit exceeded. Try again in {result.reset_after} seconds.",
            retry_after=result.reset_after,
            limit=result.limit,
            remaining=result.remaining,
        )

    return result


# ============================================================================
# Request helpers
# ============================================================================


def get_client_ip(request: Request) -> str:
    """
    Client IP, honouring proxy headers.

    HOW: X-Real-IP, then the first X-Forwarded-For entry, then the socket peer.
    """
    x_real_ip = request.headers.get("X-Real-IP")
    if x_real_ip:
        return x_real_ip.strip()

    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


def get_request_token(request: Request) -> Optional[str]:
    """Session token from the Authorization header or the session cookie."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def resolve_caller(request: Request) -> Tuple[str, str]:
    """
    Role and identifier used for per-role limits.

    WHY: Decoding the token is enough to pick a budget; the session itself
    is validated later by the route dependencies. An invalid or missing
    token counts as a guest keyed by IP.

    Returns:
        (role, identifier)
    """
    token = get_request_token(request)
    if token:
        try:
            payload = verify_token(token)
        except AuthenticationError:
            payload = None
        if payload and payload.get("role") and payload.get("user_id"):
            return payload["role"], payload["user_id"]
    return GUEST_ROLE, get_client_ip(request)


def rate_limit_headers(result: RateLimitResult) -> Dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_after),
    }


# ============================================================================
# Rate Limit Middleware
# ============================================================================


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware applying rate limits to API requests.

    WHAT: Identity endpoints get per-IP limits, other API paths get per-role
    limits. Paths outside the API prefix (health, docs) are not limited.

    Usage:
        app.add_middleware(RateLimitMiddleware)
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if not settings.RATE_LIMIT_ENABLED or not path.startswith(settings.API_V1_PREFIX):
            return await call_next(request)

        auth_limits = auth_rate_limits()
        if path in auth_limits:
            config = auth_limits[path]
            identifier, endpoint = get_client_ip(request), path
        else:
            role, identifier = resolve_caller(request)
            config = role_rate_limits().get(role, role_rate_limits()[GUEST_ROLE])
            endpoint = "api"

        limiter = await get_rate_limiter()
        result = await limiter.check_rate_limit(identifier, endpoint, config=config)

        if not result.allowed:
            logger.warning("Rate limit exceeded for %s on %s", identifier, path)
            exc = RateLimitExceeded(
                message=f"Rate limit exceeded. Try again in {result.reset_after} seconds.",
                retry_after=result.reset_after,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict(),
                headers={**rate_limit_headers(result), "Retry-After": str(result.reset_after)},
            )

        response = await call_next(request)
        response.headers.update(rate_limit_headers(result))
        return response
