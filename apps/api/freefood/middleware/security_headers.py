from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from freefood.core.config import settings

# The event page asks for the viewer's position and may open the camera for photos
PERMISSIONS_POLICY = "geolocation=(self), camera=(self), microphone=(), payment=()"

# Inline photos arrive as data: URLs; map tiles come from the provider over https
CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "img-src 'self' data: blob: https:",
        "script-src 'self' https:",
        "style-src 'self' 'unsafe-inline' https:",
        "connect-src 'self' https:",
        "frame-ancestors 'self'",
    ]
)


def _baseline_headers() -> dict[str, str]:
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "SAMEORIGIN",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": PERMISSIONS_POLICY,
        "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    }
    if settings.env not in ("local", "test"):
        headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        if settings.security_headers_enabled:
            for name, value in _baseline_headers().items():
                response.headers.setdefault(name, value)
        return response
