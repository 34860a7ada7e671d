from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services import response

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTPException carrying both the envelope `errors` and `message`."""

    status_code_default = 500

    def __init__(
        self,
        errors: str | dict | list,
        message: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(
            status_code=self.status_code_default, detail=errors, headers=headers
        )
        self.message = message or response.reason_phrase(self.status_code_default)


class ValidationError(ApiError):
    status_code_default = 400


class UnauthorizedError(ApiError):
    status_code_default = 401


class ForbiddenError(ApiError):
    status_code_default = 403


class NotFoundError(ApiError):
    status_code_default = 404


class ConflictError(ApiError):
    status_code_default = 409


class InternalError(ApiError):
    status_code_default = 500


def _request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    return str(rid) if rid else "unknown"


def _sanitize_input(value):
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, UploadFile):
        return value.filename or "upload"
    if isinstance(value, dict):
        return {key: _sanitize_input(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_sanitize_input(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _json_error(status_code: int, errors, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=response.error(errors, message, status_code),
        headers=headers,
    )


def register_error_handlers(app) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        message = getattr(exc, "message", None) or response.reason_phrase(exc.status_code)
        detail = exc.detail if exc.detail is not None else message
        return _json_error(exc.status_code, detail, message, getattr(exc, "headers", None))

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = response.reason_phrase(exc.status_code)
        detail = exc.detail if getattr(exc, "detail", None) is not None else message
        return _json_error(exc.status_code, detail, message, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            error_copy = dict(error)
            if "input" in error_copy:
                error_copy["input"] = _sanitize_input(error_copy.get("input"))
            error_copy.pop("ctx", None)
            errors.append(error_copy)
        return _json_error(400, errors, "Invalid request data")

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return _json_error(429, f"Rate limit exceeded: {exc.detail}", "Too Many Requests")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            extra={"request_id": _request_id(request)},
        )
        return _json_error(500, "Internal server error", "Internal Server Error")
