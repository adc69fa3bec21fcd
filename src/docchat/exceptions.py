"""Exception hierarchy and error taxonomy for docchat.

Every error that can reach an HTTP caller is a ``DocChatError`` subclass
carrying its taxonomy ``error_type``, whether the caller may retry, and the
status code the API layer maps it to.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError


class DocChatError(Exception):
    """Base exception for all docchat errors."""

    error_type: str = "search_failed"
    status_code: int = 500
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        retry_after: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.retry_after = retry_after


class RequestValidationFailed(DocChatError):
    """Bad input shape. The caller must fix the request."""

    error_type = "validation_error"
    status_code = 400
    recoverable = False


class EmbeddingError(DocChatError):
    """Embedding provider failed."""

    error_type = "embedding_failed"
    status_code = 503


class SearchError(DocChatError):
    """Search provider failed."""

    error_type = "search_failed"
    status_code = 503


class UpstreamTimeoutError(DocChatError):
    """An upstream provider exceeded its time budget."""

    error_type = "timeout"
    status_code = 503


class UnauthorizedError(DocChatError):
    """Missing or invalid caller identity."""

    error_type = "unauthorized"
    status_code = 401
    recoverable = False


class RateLimitedError(DocChatError):
    """Caller exceeded its request allowance; retry after ``retry_after`` seconds."""

    error_type = "rate_limited"
    status_code = 429

    def __init__(self, message: str, *, retry_after: int = 60, **kwargs: Any) -> None:
        super().__init__(message, retry_after=retry_after, **kwargs)


class TokenizerError(DocChatError):
    """Raised when the configured tokenizer backend cannot be loaded."""


class SharedCacheError(DocChatError):
    """Raised by the shared cache tier. Never surfaces past the tiered cache."""


class ErrorPayload(BaseModel):
    """Structured JSON body returned for every failed request."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    message: str
    recoverable: bool
    retry_after: Optional[int] = Field(default=None, alias="retryAfter")
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_exception(cls, exc: DocChatError) -> ErrorPayload:
        return cls(
            type=exc.error_type,
            message=exc.message,
            recoverable=exc.recoverable,
            retry_after=exc.retry_after,
            details=exc.details,
        )

    def to_response_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def classify_error(
    exc: BaseException,
    *,
    operation: str = "Search operation",
    fallback: type[DocChatError] = SearchError,
) -> DocChatError:
    """Map an arbitrary exception onto the error taxonomy.

    Timeouts become ``UpstreamTimeoutError`` and anything unrecognised becomes
    *fallback*; both messages name *operation*.
    """
    if isinstance(exc, DocChatError):
        return exc
    if isinstance(exc, PydanticValidationError):
        return RequestValidationFailed(
            "Invalid request parameters",
            details={
                "errors": exc.errors(include_url=False, include_context=False, include_input=False)
            },
        )
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return UpstreamTimeoutError(f"{operation} timed out")
    return fallback(f"{operation} failed: service temporarily unavailable")


__all__ = [
    "DocChatError",
    "RequestValidationFailed",
    "EmbeddingError",
    "SearchError",
    "UpstreamTimeoutError",
    "UnauthorizedError",
    "RateLimitedError",
    "TokenizerError",
    "SharedCacheError",
    "ErrorPayload",
    "classify_error",
]
