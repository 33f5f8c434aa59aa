"""
Logging configuration.

Configures loguru sinks with file rotation.
"""

import sys

from loguru import logger

from maxreward.config.settings import settings


def setup_logging() -> None:
    """Configure logger with stderr and rotating file sinks."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info("Starting MaxReward community point engine...")
