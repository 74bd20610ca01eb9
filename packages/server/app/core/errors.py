"""
Typed application errors and the handlers that render them.

Every error leaves the API in the same envelope::

    {"success": false, "error": "<message>", "code": "<CODE>", "details": [...]}
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

log = structlog.get_logger()

STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
}


class AppError(HTTPException):
    """Base error: carries an HTTP status and a machine-readable code."""

    status_code_default = 500
    code_default = "INTERNAL_ERROR"
    message_default = "Internal server error"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=message or self.message_default,
        )
        self.code = code or self.code_default

    @property
    def message(self) -> str:
        return self.detail


class BadRequestError(AppError):
    status_code_default = 400
    code_default = "BAD_REQUEST"
    message_default = "Bad request"


class UnauthorizedError(AppError):
    status_code_default = 401
    code_default = "UNAUTHORIZED"
    message_default = "Unauthorized"


class ForbiddenError(AppError):
    status_code_default = 403
    code_default = "FORBIDDEN"
    message_default = "Forbidden"


class NotFoundError(AppError):
    status_code_default = 404
    code_default = "NOT_FOUND"
    message_default = "Resource not found"


class ConflictError(AppError):
    status_code_default = 409
    code_default = "CONFLICT"
    message_default = "Conflict"


def error_body(
    message: str, code: str, details: Optional[list[dict[str, Any]]] = None
) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": message, "code": code}
    if details is not None:
        body["details"] = details
    return body


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.code),
        headers=getattr(exc, "headers", None),
    )


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = STATUS_CODES.get(exc.status_code, "ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), code),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {
            "path": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body("Validation failed", "VALIDATION_ERROR", details),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    settings = request.app.state.settings
    log.exception("request.unhandled_error", path=request.url.path, method=request.method)
    message = (
        "Internal server error" if settings.environment == "production" else str(exc)
    )
    return JSONResponse(status_code=500, content=error_body(message, "INTERNAL_ERROR"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
