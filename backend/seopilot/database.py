"""
Database connection and session management for SEOpilot.
"""
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from seopilot.config import settings
from seopilot.models.base import Base


def async_database_url(url: str) -> str:
    return url.replace("postgresql://", "postgresql+asyncpg://")


engine = create_async_engine(
    async_database_url(settings.DATABASE_URL),
    echo=settings.ENVIRONMENT == "development",
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_task_session_maker() -> async_sessionmaker[AsyncSession]:
    """Fresh engine and session maker for Celery tasks.

    Each task runs on its own event loop, so it cannot share the
    module-level engine's connection pool.
    """
    task_engine = create_async_engine(
        async_database_url(settings.DATABASE_URL), pool_pre_ping=True, pool_size=5, max_overflow=10
    )
    return async_sessionmaker(task_engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Initialize database tables."""
    from seopilot.models.scan import CodebaseScan  # noqa: F401
    from seopilot.models.change import Change, SearchMetricsDaily  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
