"""Per-user daily extraction quota and audit logging."""

from __future__ import annotations

from typing import Any, Optional

from ..constants import DAILY_EXTRACTION_LIMIT
from ..domain.errors import ExtractionLogNotFoundError
from ..domain.models import DailyUsage, ExtractionModule, FeedbackType
from ..observability.logger import get_logger
from ..storage.repositories import DailyLimitRepository, ExtractionLogRepository
from ..utils.time import utc_today_key

logger = get_logger(__name__)


class ExtractionUsageTracker:
    """Rate limiting and audit trail for extraction attempts.

    The counter is keyed by the UTC calendar date and only grows on successful
    extractions; every attempt, successful or not, gets one audit row.
    """

    def __init__(
        self,
        logs: ExtractionLogRepository,
        limits: DailyLimitRepository,
        *,
        daily_limit: int = DAILY_EXTRACTION_LIMIT,
    ):
        self._logs = logs
        self._limits = limits
        self._daily_limit = daily_limit

    async def check_daily_limit(self, user_id: str) -> bool:
        """True while the user is still under today's quota."""
        used = await self._limits.get_count(user_id, utc_today_key())
        return used < self._daily_limit

    async def increment_daily_count(self, user_id: str) -> None:
        count = await self._limits.increment(user_id, utc_today_key())
        logger.info("daily_count_incremented", user_id=user_id, count=count, limit=self._daily_limit)

    async def log_extraction_attempt(
        self,
        user_id: str,
        module: ExtractionModule,
        input_data: str,
        extracted_data: Optional[dict[str, Any]] = None,
        error_message: Optional[str] = None,
        tokens_used: Optional[int] = None,
        duration_ms: Optional[int] = None,
    ) -> str:
        log_id = await self._logs.insert_log(
            user_id=user_id,
            module=module,
            input_data=input_data,
            extraction_result=extracted_data,
            error_message=error_message,
            tokens_used=tokens_used,
            generation_duration=duration_ms,
        )
        logger.info(
            "extraction_attempt_logged",
            log_id=log_id,
            user_id=user_id,
            module=module.value,
            success=extracted_data is not None,
        )
        return log_id

    async def get_daily_usage(self, user_id: str) -> DailyUsage:
        date = utc_today_key()
        used = await self._limits.get_count(user_id, date)
        return DailyUsage(used=used, limit=self._daily_limit, date=date)

    async def submit_feedback(self, user_id: str, log_id: str, feedback: FeedbackType) -> None:
        log = await self._logs.get_log(log_id)
        # Another user's log is reported exactly like a missing one.
        if log is None or log.user_id != user_id:
            raise ExtractionLogNotFoundError("Extraction log not found", detail=log_id)
        await self._logs.insert_feedback(log_id=log_id, user_id=user_id, feedback=feedback)
        logger.info("extraction_feedback_saved", log_id=log_id, user_id=user_id, feedback=feedback.value)
