import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from ..models.base import Base

logger = logging.getLogger(__name__)

# Global variables for database connection
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from settings"""
    from .config import get_settings

    return get_settings().database_url


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async engine with the pool settings used across the app"""
    return create_async_engine(
        database_url,
        echo=False,  # Set to True for SQL debugging
        poolclass=NullPool if "sqlite" in database_url else None,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_database(database_url: Optional[str] = None) -> async_sessionmaker:
    """Initialize database connection and create tables"""
    global _engine, _session_factory

    database_url = database_url or get_database_url()
    logger.info(f"Initializing database: {database_url.split('://')[0]}")

    if database_url.startswith("sqlite") and ":memory:" not in database_url:
        from pathlib import Path

        db_path = database_url.split(":///", 1)[-1]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    _engine = create_engine(database_url)
    _session_factory = create_session_factory(_engine)

    # Create all tables
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created/verified")

    return _session_factory


async def close_database() -> None:
    """Close database connection"""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        logger.info("Database connection closed")
    _engine = None
    _session_factory = None


async def health_check(session_factory: Optional[async_sessionmaker] = None) -> bool:
    """Run ``SELECT 1`` through the given (or the initialized) session factory."""
    factory = session_factory or _session_factory
    if factory is None:
        logger.warning("Database health check skipped: database not initialized")
        return False

    logger.info("Performing database health check")
    try:
        async with factory() as session:
            value = (await session.execute(text("SELECT 1"))).scalar()
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return False

    if value != 1:
        logger.warning(f"Database health check query returned unexpected value: {value}")
        return False
    logger.info("Database health check successful")
    return True
