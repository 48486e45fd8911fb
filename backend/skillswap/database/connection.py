"""
Async database engine and session management.
Uses SQLAlchemy 2.0 with asyncpg. The engine is created lazily on first use.
"""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from skillswap.config import get_settings
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


@lru_cache
def get_engine() -> AsyncEngine:
    """Create async engine with connection pool settings."""
    settings = get_settings()
    db_url = settings.database_url

    if not db_url:
        raise ValueError("DATABASE_URL is not configured")

    logger.info(f"Connecting to database: {db_url.split('@')[1] if '@' in db_url else 'unknown'}")

    return create_async_engine(
        db_url,
        pool_size=10,
        max_overflow=5,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.environment == "development" and settings.log_level == "DEBUG",
    )


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields a database session. Caller must not log session contents."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def transaction() -> AsyncGenerator[AsyncSession, None]:
    """Context manager for explicit transaction. Commits on exit, rolls back on exception."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Transaction rolled back")
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Create tables if missing and verify connectivity."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database connection verified")


async def close_db() -> None:
    """Dispose of the connection pool."""
    await get_engine().dispose()
    logger.info("Database pool disposed")
