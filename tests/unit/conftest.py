from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from recipe_keeper.config.settings import reset_settings
from recipe_keeper.models.database import Base
from recipe_keeper.storage.repositories import DailyLimitRepository, ExtractionLogRepository


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    monkeypatch.delenv("GATEWAY_API_KEY", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'recipes.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def log_repo(session_factory) -> ExtractionLogRepository:
    return ExtractionLogRepository(session_factory=session_factory)


@pytest.fixture
def limit_repo(session_factory) -> DailyLimitRepository:
    return DailyLimitRepository(session_factory=session_factory)
