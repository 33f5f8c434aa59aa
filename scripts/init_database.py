#!/usr/bin/env python3
"""Initialize database tables and the company reserve row."""

import asyncio
import sys

from loguru import logger

from maxreward.config.database import create_engine, create_session_maker
from maxreward.models import Base
from maxreward.repositories.company_reserve_repository import (
    CompanyReserveRepository,
)

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all database tables (checkfirst) and the reserve singleton."""
    logger.info("Connecting to database...")
    engine = create_engine()

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    async with create_session_maker(engine)() as session:
        reserve = await CompanyReserveRepository(session).get_or_create()
        await session.commit()
        logger.info(f"Company reserve ready: {reserve.cr_points} CR")

    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
