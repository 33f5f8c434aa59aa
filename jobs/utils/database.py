"""Database session factory for background tasks."""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from maxreward.config.database import create_session_maker, normalize_database_url
from maxreward.config.settings import settings


def create_task_engine() -> AsyncEngine:
    """
    Create engine for tasks.

    Every asyncio.run() of a task has its own event loop, so connections
    are not pooled across runs.
    """
    return create_async_engine(
        normalize_database_url(settings.database_url),
        echo=False,
        poolclass=NullPool,
    )


def create_task_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker for tasks."""
    if engine is None:
        engine = create_task_engine()
    return create_session_maker(engine)
