"""
Error kinds and the handlers that render them.

Services raise these close to the violation. Every error leaves the API as
``{"error": ..., "message": ..., "timestamp": ...}``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Error kinds
# ---------------------------------------------------------------------------

class ApiError(HTTPException):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)


class ValidationFailure(ApiError):
    status_code = 400


class AuthenticationRequired(ApiError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


class InvalidStateTransition(ApiError):
    status_code = 422

    def __init__(self, entity: str, current: str, target: str, allowed: Optional[list[str]] = None):
        message = f"Cannot transition {entity} from '{current}' to '{target}'."
        if allowed is not None:
            message += f" Allowed: {allowed}"
        super().__init__(message)
        self.current = current
        self.target = target


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def error_body(status_code: int, message: str, details: Optional[list[Any]] = None) -> dict:
    try:
        reason = HTTPStatus(status_code).phrase
    except ValueError:
        reason = "Error"
    body = {
        "error": reason,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details is not None:
        body["details"] = details
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code >= 500:
        log.error("request.failed", path=request.url.path, status=exc.status_code, message=message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    first = details[0]["msg"] if details else "Invalid request"
    return JSONResponse(
        status_code=400,
        content=error_body(400, f"Validation failed: {first}", details),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(
        status_code=500,
        content=error_body(500, "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
