from __future__ import annotations

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from freefood.core.config import settings

logger = structlog.get_logger()

BODY_METHODS = {"POST", "PUT", "PATCH"}


def _too_large(request: Request, size: int) -> JSONResponse:
    logger.warning("request_body_too_large", path=request.url.path, size=size)
    return JSONResponse(
        status_code=413,
        content={"error": f"request body exceeds {settings.max_body_bytes} bytes"},
    )


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject bodies over ``MAX_BODY_BYTES``.

    A declared Content-Length is checked up front. Chunked bodies are read
    here, counting bytes, and handed on to the route once complete.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                size = int(declared)
            except ValueError:
                return JSONResponse(status_code=400, content={"error": "invalid Content-Length"})
            if size > settings.max_body_bytes:
                return _too_large(request, size)
            return await call_next(request)

        if request.method in BODY_METHODS:
            chunks: list[bytes] = []
            size = 0
            async for chunk in request.stream():
                size += len(chunk)
                if size > settings.max_body_bytes:
                    return _too_large(request, size)
                chunks.append(chunk)
            # Cached on the request the same way Request.body() does, so the route still sees it
            request._body = b"".join(chunks)

        return await call_next(request)
