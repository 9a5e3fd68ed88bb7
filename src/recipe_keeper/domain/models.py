"""Framework-agnostic domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ExtractionModule(str, Enum):
    TEXT = "text"
    URL = "url"


class FeedbackType(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
    INVALID_JSON = "INVALID_JSON"
    MISSING_TEXT = "MISSING_TEXT"
    TEXT_TOO_LONG = "TEXT_TOO_LONG"
    INVALID_URL = "INVALID_URL"
    UNSUPPORTED_DOMAIN = "UNSUPPORTED_DOMAIN"
    INVALID_FEEDBACK = "INVALID_FEEDBACK"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    DAILY_LIMIT_EXCEEDED = "DAILY_LIMIT_EXCEEDED"
    EXTRACTION_LOG_NOT_FOUND = "EXTRACTION_LOG_NOT_FOUND"
    SCRAPING_TIMEOUT = "SCRAPING_TIMEOUT"
    SCRAPING_CONNECTION_ERROR = "SCRAPING_CONNECTION_ERROR"
    SCRAPING_ACCESS_DENIED = "SCRAPING_ACCESS_DENIED"
    SCRAPING_ERROR = "SCRAPING_ERROR"
    INSUFFICIENT_CONTENT = "INSUFFICIENT_CONTENT"
    AI_EXTRACTION_ERROR = "AI_EXTRACTION_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class GatewayErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    API_ERROR = "API_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


@dataclass
class ExtractionValidationResult:
    data: dict[str, Any]
    warnings: list[str] = field(default_factory=list)
    has_errors: bool = False


@dataclass(frozen=True)
class ReducedContent:
    text: str
    image_url: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class ExtractionOutcome:
    extraction_log_id: str
    result: ExtractionValidationResult
    original_text: Optional[str] = None


@dataclass(frozen=True)
class DailyUsage:
    used: int
    limit: int
    date: str

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)
