"""Global exception handlers mapping domain exceptions to structured JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from docchat.exceptions import (
    DocChatError,
    ErrorPayload,
    RateLimitedError,
    RequestValidationFailed,
    UnauthorizedError,
)

log = logging.getLogger(__name__)


def error_response(exc: DocChatError) -> JSONResponse:
    """Render ``{type, message, recoverable, retryAfter?}`` with the taxonomy status code."""
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitedError) and exc.retry_after is not None:
        headers["Retry-After"] = str(exc.retry_after)
    if isinstance(exc, UnauthorizedError):
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorPayload.from_exception(exc).to_response_body(),
        headers=headers or None,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception-to-HTTP-status mappings."""

    @app.exception_handler(DocChatError)
    async def handle_docchat_error(request: Request, exc: DocChatError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error("%s on %s: %s", exc.error_type, request.url.path, exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        return error_response(
            RequestValidationFailed(
                "Invalid request parameters",
                details={"fields": fields},
            )
        )
