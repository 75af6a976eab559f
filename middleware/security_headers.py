"""Browser hardening headers added to every response."""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CSP_DIRECTIVES = (
    "default-src 'self'",
    "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com",
    "font-src 'self' https://fonts.gstatic.com",
    "script-src 'self'",
    "img-src 'self' data: https:",
    "connect-src 'self'",
    "frame-ancestors 'self'",
    "base-uri 'self'",
    "form-action 'self'",
    "object-src 'none'",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Set CSP, anti-sniffing, framing, referrer and HSTS headers.

    ``img-src`` allows ``data:`` so the QR login token can be shown inline.
    Headers already set by a route are left alone.
    """

    def __init__(
        self,
        app,
        csp_policy: Optional[str] = None,
        hsts_max_age: int = 15552000,
        enable_hsts: bool = True,
    ) -> None:
        super().__init__(app)
        self.csp_policy = csp_policy or "; ".join(CSP_DIRECTIVES)
        self.hsts_max_age = hsts_max_age
        self.enable_hsts = enable_hsts

    def security_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Security-Policy": self.csp_policy,
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "SAMEORIGIN",
            "Referrer-Policy": "no-referrer",
            "Cross-Origin-Opener-Policy": "same-origin",
            "Cross-Origin-Resource-Policy": "same-origin",
        }
        if self.enable_hsts:
            headers["Strict-Transport-Security"] = f"max-age={self.hsts_max_age}; includeSubDomains"
        return headers

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        for name, value in self.security_headers().items():
            response.headers.setdefault(name, value)
        return response
