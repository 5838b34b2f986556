"""
Rate limiting for the TradeScout API.

- Keys on the client IP address
- Disabled in the test environment
"""

import os

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.analysis_service.utils.logger import get_logger

logger = get_logger(__name__)


def client_ip_key(request: Request) -> str:
    """
    Generate rate-limiting key.

    Session ids are chosen by the client, so only the remote address
    counts. Falls back to an anonymous key when it is unknown.
    """
    try:
        ip = get_remote_address(request)
        return f"ip:{ip}" if ip else "anonymous"

    except Exception as exc:
        logger.warning(
            "Rate limit key fallback used",
            extra={"error": str(exc)},
        )
        return "anonymous"


#  Global limiter instance
limiter = Limiter(
    key_func=client_ip_key,
    default_limits=["100/minute"],  # Safety net
    enabled=os.getenv("TRADESCOUT_ENV") != "test",
)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
):
    """
    Custom response when rate limit is exceeded.
    """
    logger.warning(
        "Rate limit exceeded",
        extra={
            "path": request.url.path,
            "ip": get_remote_address(request),
        },
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
        },
    )
