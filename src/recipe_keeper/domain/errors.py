"""Domain-specific errors.

Every error carries a client-facing code and an HTTP-style status code. The
HTTP layer renders them into the uniform ``{"error": {...}}`` payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .models import ErrorCode, GatewayErrorCode


class RecipeKeeperError(Exception):
    """Base class for all domain errors."""

    default_code: str = ErrorCode.INTERNAL_SERVER_ERROR.value
    default_status: int = 500

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.info = DomainErrorInfo(code=code or self.default_code, message=message, detail=detail)
        self.status_code = status_code if status_code is not None else self.default_status
        self.details = details

    @property
    def code(self) -> str:
        return self.info.code


@dataclass(frozen=True)
class DomainErrorInfo:
    code: str
    message: str
    detail: Optional[str] = None


class InvalidInputError(RecipeKeeperError):
    """Raised when request validation fails (before any side effect)."""

    default_code = ErrorCode.INVALID_INPUT.value
    default_status = 400


class UnsupportedDomainError(InvalidInputError):
    default_code = ErrorCode.UNSUPPORTED_DOMAIN.value


class AuthenticationError(RecipeKeeperError):
    default_code = ErrorCode.AUTH_REQUIRED.value
    default_status = 401


class DailyLimitExceededError(RecipeKeeperError):
    default_code = ErrorCode.DAILY_LIMIT_EXCEEDED.value
    default_status = 429


class ExtractionLogNotFoundError(RecipeKeeperError):
    default_code = ErrorCode.EXTRACTION_LOG_NOT_FOUND.value
    default_status = 404


class PageFetchError(RecipeKeeperError):
    """Base class for failures while downloading a recipe page."""

    default_code = ErrorCode.SCRAPING_ERROR.value
    default_status = 502


class PageFetchTimeoutError(PageFetchError):
    default_code = ErrorCode.SCRAPING_TIMEOUT.value
    default_status = 504


class PageConnectionError(PageFetchError):
    default_code = ErrorCode.SCRAPING_CONNECTION_ERROR.value


class PageHTTPError(PageFetchError):
    def __init__(self, message: str, *, http_status: int | None, detail: str | None = None):
        code = ErrorCode.SCRAPING_ERROR.value
        if http_status in (401, 403, 429):
            code = ErrorCode.SCRAPING_ACCESS_DENIED.value
        super().__init__(message, detail, code=code)
        self.http_status = http_status


class InsufficientContentError(RecipeKeeperError):
    default_code = ErrorCode.INSUFFICIENT_CONTENT.value
    default_status = 422


class ModelOutputParseError(RecipeKeeperError):
    """The model broke the structured-output contract (no content / not JSON)."""

    default_code = ErrorCode.AI_EXTRACTION_ERROR.value
    default_status = 422


class ExtractionFailedError(RecipeKeeperError):
    """Parseable model output that is missing critical recipe fields."""

    default_code = ErrorCode.AI_EXTRACTION_ERROR.value
    default_status = 422


class StorageError(RecipeKeeperError):
    default_code = ErrorCode.STORAGE_ERROR.value
    default_status = 500


# Status codes exposed to our own callers for upstream model failures. The
# gateway's own status (e.g. 401 from the provider) says nothing about the
# caller's request.
_GATEWAY_PUBLIC_STATUS = {
    GatewayErrorCode.RATE_LIMIT_EXCEEDED: 429,
    GatewayErrorCode.TIMEOUT_ERROR: 504,
    GatewayErrorCode.AUTH_ERROR: 503,
    GatewayErrorCode.CONFIG_ERROR: 503,
    GatewayErrorCode.CONNECTION_ERROR: 503,
    GatewayErrorCode.SERVICE_UNAVAILABLE: 503,
    GatewayErrorCode.INVALID_REQUEST: 502,
    GatewayErrorCode.NOT_FOUND: 502,
    GatewayErrorCode.API_ERROR: 502,
}


class ModelGatewayError(RecipeKeeperError):
    """Typed failure of the chat-completion gateway."""

    def __init__(self, status_code: int, message: str, code: GatewayErrorCode, detail: str | None = None):
        super().__init__(message, detail, code=code.value, status_code=status_code)
        self.gateway_code = code

    @property
    def public_status_code(self) -> int:
        return _GATEWAY_PUBLIC_STATUS.get(self.gateway_code, 500)
