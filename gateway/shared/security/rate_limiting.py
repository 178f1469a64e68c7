"""
Rate limiting configuration and setup.

Uses slowapi to enforce a per-client default limit on every route.
Protects the paid upstream quotas from a single noisy caller.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

DEFAULT_RATE_LIMIT = "100/minute"


def build_limiter(default_limit: str = DEFAULT_RATE_LIMIT, enabled: bool = True) -> Limiter:
    """Create a limiter keyed on the client address.

    One limiter per application instance, so separate apps (tests) do not
    share counters.
    """
    return Limiter(
        key_func=get_remote_address,
        default_limits=[default_limit],
        enabled=enabled,
    )


def rate_limit_exceeded_handler(
    _request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Handle rate limit exceeded errors with a clean JSON response.

    Args:
        _request: The incoming HTTP request.
        exc: The rate limit exceeded exception.

    Returns:
        A 429 JSON response with a clear error message.
    """
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded", "detail": str(exc.detail)},
    )
