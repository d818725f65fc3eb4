"""
Rate Limiting for CMS Pro API
=============================
Implements rate limiting using slowapi (in-memory storage by default,
any limits storage URI via RATE_LIMIT_STORAGE_URI).

Every route gets RATE_LIMIT_PER_MINUTE through SlowAPIMiddleware.
Special endpoints have their own limits:
- /auth/login: 5 req/min (brute force protection)
- /auth/register: 3 req/min
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from cmspro.core.config import settings
from cmspro.core.logging_config import logger

LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "3/minute"


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key based on user authentication.

    Priority:
    1. Authenticated user ID (set by the auth dependency)
    2. IP address (for anonymous users)
    """
    user = getattr(request.state, 'user', None)
    if user is not None:
        return f"user:{user.id}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.

    Kept synchronous: SlowAPIMiddleware calls it directly without awaiting.

    Returns a JSON response with the error message and a Retry-After header.
    """
    retry_after = "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "detail": "Too many requests. Please slow down.",
            "error": {
                "code": "rate_limit_exceeded",
                "message": str(exc.detail),
                "details": {"retry_after_seconds": int(retry_after)},
            },
        },
        headers={"Retry-After": retry_after},
    )
