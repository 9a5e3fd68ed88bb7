"""Application lifespan management (startup/shutdown hooks)."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from .config.settings import get_settings
from .llm.openrouter_adapter import OpenRouterAdapter
from .observability.logger import configure_logging, get_logger
from .scraping.page_fetcher import PageFetcher
from .services.content_reducer import ContentReducer
from .services.extraction_service import RecipeExtractionService
from .services.recipe_extractor import TextRecipeExtractor, UrlRecipeExtractor
from .services.usage_tracker import ExtractionUsageTracker
from .storage.database import close_db, init_db, session_factory
from .storage.repositories import DailyLimitRepository, ExtractionLogRepository

logger = get_logger(__name__)

# Shared with the HTTP controllers; populated on startup.
app_state: dict[str, Any] = {}


@asynccontextmanager
async def lifespan_manager():
    """Manage application lifespan (startup and shutdown)."""
    settings = get_settings()

    configure_logging()
    logger.info("starting_application", service_name=settings.service_name)

    await init_db()
    logger.info("database_initialized")

    gateway = OpenRouterAdapter(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        default_model=settings.openrouter_default_model,
        timeout_seconds=settings.openrouter_timeout_seconds,
        max_retries=settings.openrouter_max_retries,
        retry_delay_seconds=settings.openrouter_retry_delay_seconds,
        backoff_multiplier=settings.openrouter_backoff_multiplier,
        site_url=settings.site_url,
        app_title=settings.app_title,
    )
    logger.info(
        "model_gateway_configured",
        model=settings.openrouter_default_model,
        max_retries=settings.openrouter_max_retries,
        timeout_seconds=settings.openrouter_timeout_seconds,
    )

    fetcher = PageFetcher(timeout_seconds=settings.scrape_timeout_seconds, user_agent=settings.scrape_user_agent)
    reducer = ContentReducer()

    # Repositories hold the session factory; sessions are opened per operation.
    usage = ExtractionUsageTracker(
        ExtractionLogRepository(session_factory=session_factory),
        DailyLimitRepository(session_factory=session_factory),
    )

    app_state["extraction_service"] = RecipeExtractionService(
        text_extractor=TextRecipeExtractor(gateway),
        url_extractor=UrlRecipeExtractor(gateway, fetcher, reducer),
        usage=usage,
    )

    logger.info("application_started")
    try:
        yield
    finally:
        app_state.clear()
        await close_db()
        logger.info("application_shutdown_complete")
