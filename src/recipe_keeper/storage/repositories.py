"""Repository pattern for database access (audit log + daily counters)."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from ..domain.errors import StorageError
from ..domain.models import ExtractionModule, FeedbackType
from ..models.database import DailyExtractionLimit, ExtractionFeedback, ExtractionLog
from ..observability.logger import get_logger

logger = get_logger(__name__)

_UPSERT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class ExtractionLogRepository:
    """Append-only store of extraction attempts and the feedback given on them."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def insert_log(
        self,
        *,
        user_id: str,
        module: ExtractionModule,
        input_data: str,
        extraction_result: Optional[dict[str, Any]],
        error_message: Optional[str],
        tokens_used: Optional[int],
        generation_duration: Optional[int],
    ) -> str:
        try:
            async with self._session_factory() as session:
                record = ExtractionLog(
                    user_id=user_id,
                    module=module.value,
                    input_data=input_data,
                    extraction_result=extraction_result,
                    error_message=error_message,
                    tokens_used=tokens_used,
                    generation_duration=generation_duration,
                )
                session.add(record)
                await session.commit()
                return record.id
        except SQLAlchemyError as e:
            logger.error("extraction_log_insert_failed", user_id=user_id, error=str(e))
            raise StorageError("Failed to log extraction attempt", detail=str(e)) from e

    async def get_log(self, log_id: str) -> Optional[ExtractionLog]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(ExtractionLog).where(ExtractionLog.id == log_id))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError("Failed to read extraction log", detail=str(e)) from e

    async def insert_feedback(self, *, log_id: str, user_id: str, feedback: FeedbackType) -> str:
        try:
            async with self._session_factory() as session:
                record = ExtractionFeedback(extraction_log_id=log_id, user_id=user_id, feedback=feedback.value)
                session.add(record)
                await session.commit()
                return record.id
        except SQLAlchemyError as e:
            logger.error("extraction_feedback_insert_failed", log_id=log_id, error=str(e))
            raise StorageError("Failed to save extraction feedback", detail=str(e)) from e


class DailyLimitRepository:
    """Per-user, per-UTC-day extraction counters."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def get_count(self, user_id: str, date: str) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(DailyExtractionLimit.count).where(
                        DailyExtractionLimit.user_id == user_id,
                        DailyExtractionLimit.date == date,
                    )
                )
                return int(result.scalar_one_or_none() or 0)
        except SQLAlchemyError as e:
            raise StorageError("Failed to check daily extraction limit", detail=str(e)) from e

    async def increment(self, user_id: str, date: str) -> int:
        """Atomically add one to the counter, creating it at 1. Returns the new count."""
        try:
            async with self._session_factory() as session:
                insert = _UPSERT_INSERTS.get(session.bind.dialect.name)
                if insert is None:
                    raise StorageError(f"Unsupported database dialect: {session.bind.dialect.name}")
                stmt = (
                    insert(DailyExtractionLimit)
                    .values(user_id=user_id, date=date, count=1)
                    .on_conflict_do_update(
                        index_elements=[DailyExtractionLimit.user_id, DailyExtractionLimit.date],
                        set_={"count": DailyExtractionLimit.count + 1},
                    )
                    .returning(DailyExtractionLimit.count)
                )
                result = await session.execute(stmt)
                count = int(result.scalar_one())
                await session.commit()
                return count
        except SQLAlchemyError as e:
            logger.error("daily_count_increment_failed", user_id=user_id, error=str(e))
            raise StorageError("Failed to increment daily extraction count", detail=str(e)) from e
