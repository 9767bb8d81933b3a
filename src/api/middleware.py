"""Middleware configuration for the design board API server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from fastapi import Request
    from fastapi.responses import Response
    from starlette.middleware.base import RequestResponseEndpoint

logger = logging.getLogger(__name__)

# Initialize a rate limiter using the client's remote address as the key
limiter = Limiter(key_func=get_remote_address)

AUTH_RATE_LIMIT = "10/minute"
POST_RATE_LIMIT = "20/minute"
AI_RATE_LIMIT = "5/minute"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


async def rate_limit_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle rate-limiting errors with a custom exception handler.

    Parameters
    ----------
    request : Request
        The incoming HTTP request.
    exc : Exception
        The exception raised, expected to be ``RateLimitExceeded``.

    Returns
    -------
    Response
        A response indicating that the rate limit has been exceeded.

    Raises
    ------
    exc
        If the exception is not a ``RateLimitExceeded`` error, it is re-raised.

    """
    if isinstance(exc, RateLimitExceeded):
        logger.warning("Rate limit exceeded for %s on %s", get_remote_address(request), request.url.path)
        return _rate_limit_exceeded_handler(request, exc)
    raise exc
