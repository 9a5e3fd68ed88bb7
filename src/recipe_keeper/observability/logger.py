"""Structured logging for observability."""

from __future__ import annotations

import logging

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from ..config.settings import get_settings


def _service_stamper(service_name: str) -> Processor:
    def stamp(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return stamp


def configure_logging() -> None:
    """Configure structured logging (one JSON object per line).

    Request-scoped values (request_id, user_id, module) are bound through
    ``structlog.contextvars`` by the HTTP layer and merged into every event.
    """
    settings = get_settings()

    log_level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _service_stamper(settings.service_name),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        # Polish recipe text stays readable in the logs.
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None):
    return structlog.get_logger(name)
