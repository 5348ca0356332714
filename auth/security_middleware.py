"""Security middleware for FastAPI - rate limiting for auth routes."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from auth.rate_limiter import RateLimiter, client_key
from auth.exceptions import RateLimitedError
from api.base import error_response, json_response, request_id_of, ErrorCodes

logger = logging.getLogger(__name__)


def request_client_key(request: Request) -> str:
    """Rate limit key for a request (see auth.rate_limiter.client_key)."""
    return client_key(
        request.headers.get("X-Forwarded-For"),
        request.client.host if request.client else None,
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware that counts requests to limited paths per client.

    Runs before routing and body parsing, so malformed requests count too.
    Other paths pass through untouched.
    """

    LIMITED_PATHS = [
        "/auth/",
    ]

    def __init__(self, app, rate_limiter: RateLimiter):
        super().__init__(app)
        self._rate_limiter = rate_limiter

    def _is_limited_path(self, path: str) -> bool:
        """Check if path falls under a rate limited prefix."""
        for limited_path in self.LIMITED_PATHS:
            if path.startswith(limited_path):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        path = request.url.path

        if not self._is_limited_path(path):
            return await call_next(request)

        key = request_client_key(request)
        try:
            remaining = self._rate_limiter.check_rate_limit(key)
        except RateLimitedError as e:
            logger.warning(f"Rate limited client={key} path={path}")
            return json_response(
                429,
                error_response(
                    ErrorCodes.RATE_LIMITED,
                    f"Too many requests. Please wait {e.retry_after_seconds} seconds.",
                    request_id_of(request),
                ),
                headers={"Retry-After": str(e.retry_after_seconds)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self._rate_limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
