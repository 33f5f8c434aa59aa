#!/usr/bin/env python3
"""
Seed the CP level configuration.

Inserts the default five level ranges when the table is empty. With
--force the stored configuration is replaced by the defaults.
"""

import argparse
import asyncio
import sys

from loguru import logger

from maxreward.config.constants import DEFAULT_LEVEL_CONFIG
from maxreward.config.database import create_engine, create_session_maker
from maxreward.services.level_config_service import LevelConfigService

logger.remove()
logger.add(sys.stderr, level="INFO")


async def seed(force: bool) -> None:
    """Seed or replace level configuration."""
    engine = create_engine()

    async with create_session_maker(engine)() as session:
        service = LevelConfigService(session)
        if force:
            await service.bulk_replace(DEFAULT_LEVEL_CONFIG)
            logger.info("Level configuration replaced with defaults")
        elif not await service.seed_defaults():
            logger.info("Level configuration exists, use --force to replace")

        for row in await service.get_breakdown():
            logger.info(
                f"Levels {row['level_range']}: "
                f"{row['cp_percentage_per_level']}% per level, "
                f"{row['total_percentage_for_range']}% total"
            )

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--force",
        action="store_true",
        help="replace existing configuration with defaults",
    )
    args = parser.parse_args()
    asyncio.run(seed(args.force))


if __name__ == "__main__":
    main()
