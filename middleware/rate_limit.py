"""Starlette middleware applying `RequestThrottle` to every request."""

from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from services.errors import ThrottledError
from services.request_throttle import RequestThrottle

LOGGER = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients over their admission budget with HTTP 429.

    Admitted responses carry ``X-RateLimit-Limit``, ``X-RateLimit-Remaining``
    and ``X-RateLimit-Reset``; rejections also carry ``Retry-After``.
    """

    def __init__(self, app, throttle: RequestThrottle) -> None:
        super().__init__(app)
        self.throttle = throttle

    @staticmethod
    def _client_key(request: Request) -> str:
        client = request.client
        if client and client.host:
            return client.host
        return "unknown"

    async def dispatch(self, request: Request, call_next):
        key = self._client_key(request)
        try:
            decision = self.throttle.enforce(key)
        except ThrottledError as exc:
            LOGGER.warning("Throttled %s %s for %s", request.method, request.url.path, key)
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "message": "Too many requests. Try again later.",
                    "retryAfter": exc.retry_after,
                },
                headers=exc.decision.headers(),
            )

        response = await call_next(request)
        response.headers.update(decision.headers())
        return response
