"""Extraction orchestration service (business logic).

Both entry points run the same sequence:
VALIDATE_INPUT -> CHECK_LIMIT -> [FETCH + REDUCE] -> EXTRACT -> VALIDATE -> LOG
(+ INCREMENT on success) -> RESPOND
"""

from __future__ import annotations

from typing import Any, Optional

from ..constants import MAX_TEXT_LENGTH
from ..domain.errors import (
    DailyLimitExceededError,
    ExtractionFailedError,
    InvalidInputError,
    RecipeKeeperError,
)
from ..domain.models import (
    DailyUsage,
    ErrorCode,
    ExtractionModule,
    ExtractionOutcome,
    ExtractionValidationResult,
    FeedbackType,
)
from ..observability.logger import get_logger
from ..utils.time import current_time_ms, elapsed_ms
from .recipe_extractor import TextRecipeExtractor, UrlRecipeExtractor
from .usage_tracker import ExtractionUsageTracker

logger = get_logger(__name__)


def validate_text_input(text: Any) -> str:
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError("Text is required", code=ErrorCode.MISSING_TEXT.value)
    trimmed = text.strip()
    if len(trimmed) > MAX_TEXT_LENGTH:
        raise InvalidInputError(
            f"Text cannot exceed {MAX_TEXT_LENGTH} characters",
            detail=f"length={len(trimmed)}",
            code=ErrorCode.TEXT_TOO_LONG.value,
        )
    return trimmed


def validate_url_input(url: Any) -> str:
    if not isinstance(url, str) or not url.strip():
        raise InvalidInputError("URL is required", code=ErrorCode.INVALID_URL.value)
    return url.strip()


class RecipeExtractionService:
    """Service layer for recipe extraction.

    Responsibilities:
    - Validate input before any side effect
    - Enforce the daily quota
    - Write exactly one audit row per attempt that passed the quota gate
    - Count only successful extractions against the quota
    """

    def __init__(
        self,
        text_extractor: TextRecipeExtractor,
        url_extractor: UrlRecipeExtractor,
        usage: ExtractionUsageTracker,
    ):
        self._text = text_extractor
        self._url = url_extractor
        self._usage = usage

    async def extract_from_text(self, user_id: str, text: Any) -> ExtractionOutcome:
        trimmed = validate_text_input(text)
        await self._ensure_quota(user_id)

        start_ms = current_time_ms()
        try:
            result = await self._text.extract_from_text(trimmed)
        except Exception as e:
            await self._record_failure(user_id, ExtractionModule.TEXT, trimmed, e, elapsed_ms(start_ms))
            raise
        duration = elapsed_ms(start_ms)

        log_id = await self._finish(user_id, ExtractionModule.TEXT, trimmed, result, duration)
        return ExtractionOutcome(extraction_log_id=log_id, result=result, original_text=trimmed)

    async def extract_from_url(self, user_id: str, url: Any) -> ExtractionOutcome:
        target = validate_url_input(url)
        self._url.ensure_supported(target)
        await self._ensure_quota(user_id)

        try:
            page = await self._url.scrape(target)
        except Exception as e:
            # The model was never called: no generation duration.
            await self._record_failure(user_id, ExtractionModule.URL, target, e, None)
            raise

        start_ms = current_time_ms()
        try:
            result = await self._url.extract_from_page(target, page)
        except Exception as e:
            await self._record_failure(user_id, ExtractionModule.URL, target, e, elapsed_ms(start_ms))
            raise
        duration = elapsed_ms(start_ms)

        log_id = await self._finish(user_id, ExtractionModule.URL, target, result, duration)
        return ExtractionOutcome(extraction_log_id=log_id, result=result)

    async def get_daily_usage(self, user_id: str) -> DailyUsage:
        return await self._usage.get_daily_usage(user_id)

    async def submit_feedback(self, user_id: str, log_id: str, feedback: FeedbackType) -> None:
        await self._usage.submit_feedback(user_id, log_id, feedback)

    async def _ensure_quota(self, user_id: str) -> None:
        if not await self._usage.check_daily_limit(user_id):
            logger.info("daily_limit_exceeded", user_id=user_id)
            raise DailyLimitExceededError("Daily extraction limit exceeded. Please try again tomorrow.")

    async def _finish(
        self,
        user_id: str,
        module: ExtractionModule,
        input_data: str,
        result: ExtractionValidationResult,
        duration_ms: int,
    ) -> str:
        if result.has_errors:
            await self._usage.log_extraction_attempt(
                user_id,
                module,
                input_data,
                error_message=f"Validation errors: {', '.join(result.warnings)}",
                duration_ms=duration_ms,
            )
            logger.warning("extraction_validation_failed", user_id=user_id, warnings=result.warnings)
            raise ExtractionFailedError(
                "Failed to extract recipe data",
                details={"warnings": result.warnings, "extracted_data": result.data},
            )

        log_id = await self._usage.log_extraction_attempt(
            user_id,
            module,
            input_data,
            extracted_data=result.data,
            error_message=f"Warnings: {', '.join(result.warnings)}" if result.warnings else None,
            duration_ms=duration_ms,
        )
        await self._usage.increment_daily_count(user_id)
        logger.info(
            "extraction_succeeded",
            user_id=user_id,
            module=module.value,
            log_id=log_id,
            duration_ms=duration_ms,
            warnings=len(result.warnings),
        )
        return log_id

    async def _record_failure(
        self,
        user_id: str,
        module: ExtractionModule,
        input_data: str,
        error: Exception,
        duration_ms: Optional[int],
    ) -> None:
        code = error.code if isinstance(error, RecipeKeeperError) else ErrorCode.INTERNAL_SERVER_ERROR.value
        logger.warning("extraction_failed", user_id=user_id, module=module.value, error_code=code, error=str(error))
        try:
            await self._usage.log_extraction_attempt(
                user_id,
                module,
                input_data,
                error_message=str(error) or error.__class__.__name__,
                duration_ms=duration_ms,
            )
        except RecipeKeeperError as log_error:
            # The caller gets the extraction error, not the bookkeeping one.
            logger.error("extraction_failure_not_logged", user_id=user_id, error=str(log_error))
