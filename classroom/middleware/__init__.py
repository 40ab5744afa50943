"""
Middleware package.

WHY: Middleware provides cross-cutting concerns that apply to all
requests; here that is per-IP and per-role rate limiting.
"""

from classroom.middleware.rate_limiter import (
    RateLimitMiddleware,
    RateLimiter,
    RateLimitConfig,
    RateLimitResult,
    check_rate_limit,
    get_rate_limiter,
    auth_rate_limits,
    role_rate_limits,
)

__all__ = [
    "RateLimitMiddleware",
    "RateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
    "check_rate_limit",
    "get_rate_limiter",
    "auth_rate_limits",
    "role_rate_limits",
]
