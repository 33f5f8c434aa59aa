"""
Task scheduler.

Enqueues periodic dramatiq tasks with APScheduler.

Usage:
    python -m jobs.scheduler
"""

import asyncio

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from jobs.tasks.cp_unlock_reconciliation import reconcile_cp_unlocks
from maxreward.config.logging import setup_logging


def create_scheduler() -> AsyncIOScheduler:
    """
    Create scheduler with all periodic jobs registered.

    Returns:
        Configured, not yet started scheduler
    """
    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        reconcile_cp_unlocks.send,
        trigger=IntervalTrigger(hours=1),
        id="cp_unlock_reconciliation",
        name="CP unlock reconciliation",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler


async def main() -> None:
    """Start scheduler and run until cancelled."""
    setup_logging()
    scheduler = create_scheduler()
    scheduler.start()
    logger.info(
        f"Scheduler started with {len(scheduler.get_jobs())} job(s)"
    )

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    asyncio.run(main())
