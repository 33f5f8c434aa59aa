"""
Database engine and session factory.

Creates the async SQLAlchemy engine from settings.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from maxreward.config.settings import settings


def normalize_database_url(url: str) -> str:
    """Use the asyncpg driver for plain postgresql:// URLs."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create async engine.

    SQLite does not support pool settings, so they are only passed
    for PostgreSQL.

    Args:
        database_url: Override for settings.database_url

    Returns:
        Async engine
    """
    url = normalize_database_url(database_url or settings.database_url)

    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.database_echo)

    return create_async_engine(
        url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create session maker bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

