"""
HTTP middleware: security headers and upload size guard.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

# Multipart framing (boundaries, part headers, other form fields) on top of
# the file payload itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024

# ---------------------------------------------------------------------------
# Security Headers
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data: https://fastapi.tiangolo.com; "
        "frame-ancestors 'none';"
    ),
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response


# ---------------------------------------------------------------------------
# Upload size guard
# ---------------------------------------------------------------------------

class UploadSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject multipart requests whose declared size is over the upload limit
    before the body is read.

    The exact per-file limit is enforced again while the file is written to
    disk (see app.core.storage), which also covers chunked requests without a
    Content-Length header.
    """

    def __init__(self, app: ASGIApp, max_upload_bytes: int):
        super().__init__(app)
        self.max_request_bytes = max_upload_bytes + MULTIPART_OVERHEAD_BYTES

    async def dispatch(self, request: Request, call_next) -> Response:
        content_type = request.headers.get("content-type", "")
        if not content_type.startswith("multipart/form-data"):
            return await call_next(request)

        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_request_bytes:
            return JSONResponse(
                status_code=400,
                content={
                    "success": False,
                    "error": "File size exceeds limit",
                    "code": "FILE_TOO_LARGE",
                },
            )

        return await call_next(request)
