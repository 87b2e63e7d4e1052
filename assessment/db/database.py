"""
Database Module

Async SQLAlchemy engines, session factories and declarative Base.

Two engines, two bounded pools:
- engine: request sessions (AsyncSessionLocal), worker jobs and the
  TransactionManager (db/transaction.py) that hands each submission an
  exclusive connection
- read_engine: grading reference reads (ReadSessionLocal). A submission
  reads its answer key while holding its write connection, so the read
  must never queue behind other submissions on the same pool.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from assessment.core.config import settings

logger = logging.getLogger(__name__)


Base = declarative_base()


def create_engine_from_settings(pool_size: int, max_overflow: int) -> AsyncEngine:
    """Create an async engine with the given pool bounds."""
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_pre_ping=True,
    )


engine: AsyncEngine = create_engine_from_settings(
    settings.DB_POOL_SIZE, settings.DB_MAX_OVERFLOW
)
read_engine: AsyncEngine = create_engine_from_settings(
    settings.DB_READ_POOL_SIZE, settings.DB_READ_MAX_OVERFLOW
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

ReadSessionLocal = async_sessionmaker(
    bind=read_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a database session.

    The session is closed when the request scope finishes.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def check_db_connection() -> bool:
    """Return True if the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
