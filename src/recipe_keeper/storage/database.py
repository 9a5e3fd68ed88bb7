"""Database connection and session management (async SQLAlchemy)."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..config.settings import get_settings
from ..models.database import Base

_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def init_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the engine on first use (tests point it at SQLite)."""
    global _engine, _session_maker
    if _engine is None:
        _engine = create_async_engine(database_url or get_settings().database_url, echo=False)
        _session_maker = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _engine


def session_factory() -> AsyncSession:
    """Create a new AsyncSession (caller must close)."""
    if _session_maker is None:
        init_engine()
    assert _session_maker is not None
    return _session_maker()


async def init_db() -> None:
    """Create tables if they do not exist."""
    engine = init_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
