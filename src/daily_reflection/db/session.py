# ABOUTME: Async engine and session handling for the sql store backend.
# ABOUTME: Binds one engine per process to the app's settings; sessions commit or roll back as a unit.

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from daily_reflection.config import Settings, get_settings
from daily_reflection.db.models import Base

log = structlog.get_logger()

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def configure_db(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the engine and session factory on first use.

    Later calls return the existing factory; settings only matter the first time.
    """
    global _engine, _session_factory
    if _session_factory is None:
        settings = settings or get_settings()
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
            pool_pre_ping=True,
            echo=settings.log_level == "DEBUG",
        )
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False, autoflush=False)
        log.debug("db_configured", host=settings.db_host, database=settings.db_name)
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession]:
    """Open a session that commits when the block succeeds and rolls back otherwise."""
    async with configure_db()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(settings: Settings | None = None) -> None:
    """Create the tables if they don't exist.

    Raises on connection failure, which aborts application startup.
    """
    configure_db(settings)
    assert _engine is not None
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("db_tables_ready")


async def close_db() -> None:
    """Dispose of the engine so the next use starts fresh."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
