"""
CP unlock reconciliation task.

Finds wallets whose referral count allows a higher unlocked level than
stored and runs the unlock gate for each of them, releasing CP that an
interrupted registration left on hold. Runs every hour via scheduler.
"""

import asyncio
from decimal import Decimal
from typing import Any

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobs.broker import broker
from jobs.utils.database import create_task_engine, create_task_session_maker
from maxreward.config.settings import settings
from maxreward.repositories.member_wallet_repository import (
    MemberWalletRepository,
)
from maxreward.services.unlock.gate import UnlockGate


@dramatiq.actor(broker=broker, max_retries=3, time_limit=600_000)
def reconcile_cp_unlocks() -> None:
    """Reconcile unlock levels of all lagging wallets."""
    logger.info("Starting CP unlock reconciliation...")

    try:
        result = asyncio.run(_run_with_task_session())
        logger.info(
            f"CP unlock reconciliation complete: "
            f"{result['unlocked']} unlocked, {result['failed']} failed, "
            f"released {result['released_cp']} CP"
        )
    except Exception as e:
        logger.exception("CP unlock reconciliation failed: {}", e)
        raise


async def _run_with_task_session() -> dict[str, Any]:
    """Run reconciliation with a task-local engine."""
    engine = create_task_engine()
    try:
        return await reconcile_unlocks(create_task_session_maker(engine))
    finally:
        await engine.dispose()


async def reconcile_unlocks(
    session_maker: async_sessionmaker[AsyncSession],
    batch_size: int | None = None,
) -> dict[str, Any]:
    """
    Run the unlock gate for every wallet behind its referral tier.

    Each member is handled in its own transaction; a failing member is
    logged and does not stop the batch.

    Args:
        session_maker: Session factory
        batch_size: Max members per run (settings default)

    Returns:
        Dict with checked, unlocked and failed counts and released CP
    """
    limit = batch_size or settings.unlock_reconcile_batch_size

    async with session_maker() as session:
        member_ids = await MemberWalletRepository(
            session
        ).find_pending_unlock_member_ids(limit)

    stats: dict[str, Any] = {
        "checked": len(member_ids),
        "unlocked": 0,
        "failed": 0,
        "released_cp": Decimal("0.00"),
    }

    for member_id in member_ids:
        async with session_maker() as session:
            try:
                unlock = await UnlockGate(session).on_referral_count_changed(
                    member_id
                )
                await session.commit()
            except Exception as e:
                await session.rollback()
                stats["failed"] += 1
                logger.bind(member_id=member_id).error(
                    "Unlock reconciliation failed for member {}: {}", member_id, e
                )
                continue

        if unlock is not None:
            stats["unlocked"] += 1
            stats["released_cp"] += unlock.released_cp_amount

    return stats
