"""
api/errors.py -- The single error-kind -> HTTP status table and its handlers.

Route handlers and dependencies raise auth.errors kinds; they never choose a
status code for an error themselves. register_error_handlers() installs one
handler per family so every error leaves the API in the same envelope:

    {"error": {"code": "...", "message": "...", "detail": null}}

Conflict maps to 403 rather than 409 so a duplicate registration is not
distinguishable from other refusals by status code alone.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from api.models import ErrorDetail, ErrorResponse
from auth.errors import AuthError, Conflict, Forbidden, InvalidCredentials, InvalidOrExpiredToken, NotFound

logger = logging.getLogger("sessionguard.api")

STATUS_BY_ERROR: dict[type[AuthError], int] = {
    InvalidCredentials: 401,
    InvalidOrExpiredToken: 401,
    Forbidden: 403,
    Conflict: 403,
    NotFound: 404,
}


def status_for(exc: AuthError) -> int:
    """Look up the status for an error kind, walking the MRO for subclasses."""
    for kind in type(exc).__mro__:
        if kind in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[kind]
    return 500


def _error_response(status: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        status = status_for(exc)
        if status == 500:
            logger.error("Unmapped auth error %s on %s %s", type(exc).__name__, request.method, request.url.path)
        response = _error_response(status, exc.code, exc.message)
        if status == 401:
            response.headers["WWW-Authenticate"] = "Bearer"
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 400 with a structured error when the body or query fails validation."""
        messages = "; ".join(f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in exc.errors())
        return _error_response(400, "validation_error", "Request validation failed.", messages)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429 with Retry-After when a slowapi limit is exceeded."""
        retry_after = exc.limit.limit.get_expiry()  # window length of the tripped limit, in seconds
        response = _error_response(429, "rate_limited", "Too many requests.", str(exc.detail))
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors.

        The traceback goes to the log only, never to the response body.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, "internal_error", "An unexpected error occurred.")
