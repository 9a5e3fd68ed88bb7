"""SQLAlchemy models for the extraction audit log and daily quota counters."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class ExtractionLog(Base):
    """One row per extraction attempt (success or failure). Never updated."""

    __tablename__ = "extraction_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    module: Mapped[str] = mapped_column(String(10), nullable=False)
    input_data: Mapped[str] = mapped_column(Text, nullable=False)
    extraction_result: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    tokens_used: Mapped[int | None] = mapped_column(Integer, nullable=True)
    generation_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class DailyExtractionLimit(Base):
    __tablename__ = "daily_extraction_limits"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    date: Mapped[str] = mapped_column(String(10), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ExtractionFeedback(Base):
    __tablename__ = "extraction_feedback"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    extraction_log_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("extraction_logs.id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    feedback: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
