from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds ``max_body_bytes``."""

    def __init__(self, app, max_body_bytes: int):
        super().__init__(app)
        self.max_body_bytes = int(max_body_bytes)

    async def dispatch(self, request: Request, call_next):
        raw = request.headers.get("content-length")
        if raw is not None:
            try:
                length = int(raw)
            except ValueError:
                return PlainTextResponse("Invalid Content-Length header", status_code=400)
            if length > self.max_body_bytes:
                return PlainTextResponse(
                    f"Request body too large: {length} > {self.max_body_bytes} bytes",
                    status_code=413,
                )

        return await call_next(request)
