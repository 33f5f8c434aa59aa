"""Integration tests for the unlock gate and its reconciliation job."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from jobs.tasks.cp_unlock_reconciliation import reconcile_unlocks
from maxreward.models import (
    CpTransaction,
    CpTransactionStatus,
    CpTransactionType,
    CpUnlockHistory,
    DistributionReason,
)
from maxreward.services.distribution.orchestrator import CommunityPointDistributor
from maxreward.services.unlock.gate import UnlockGate


async def _hold_cp_at_level_seven(session, builder) -> int:
    """Build an 8-chain and distribute once; returns the member holding 4.00."""
    chain = await builder.chain(8)
    await CommunityPointDistributor(session).distribute(
        chain[7], chain[7], Decimal("50"), DistributionReason.PURCHASE
    )
    await session.commit()
    return chain[0]


async def _history_count(session, member_id: int) -> int:
    return await session.scalar(
        select(func.count(CpUnlockHistory.id)).where(
            CpUnlockHistory.member_id == member_id
        )
    )


@pytest.mark.asyncio
async def test_unlock_releases_held_cp(
    session, builder, load_wallet, load_levels
):
    """Two referrals unlock level 15 and release the level 7 hold."""
    member_a = await _hold_cp_at_level_seven(session, builder)
    wallet = await load_wallet(session, member_a)
    wallet.total_referrals = 2
    await session.commit()

    result = await UnlockGate(session).on_referral_count_changed(member_a)
    await session.commit()

    assert result is not None
    assert result.previous_unlocked_level == 5
    assert result.new_unlocked_level == 15
    assert result.previous_referrals == 0
    assert result.new_referrals == 2
    assert result.released_cp_amount == Decimal("4.00")
    assert result.released_transactions == 1

    wallet = await load_wallet(session, member_a)
    assert wallet.unlocked_level == 15
    assert wallet.onhold_points == Decimal("0.00")
    assert wallet.available_points == Decimal("4.00")
    assert wallet.total_cp == Decimal("4.00")

    level = (await load_levels(session, member_a))[7]
    assert level.onhold_cp == Decimal("0.00")
    assert level.available_cp == Decimal("4.00")
    assert level.total_cp == Decimal("4.00")
    assert level.is_locked is False

    tx = (
        await session.execute(
            select(CpTransaction)
            .where(CpTransaction.receiver_member_id == member_a)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    assert tx.status == CpTransactionStatus.RELEASED
    assert tx.transaction_type == CpTransactionType.UNLOCKED
    assert tx.released_at is not None

    assert await _history_count(session, member_a) == 1


@pytest.mark.asyncio
async def test_second_call_is_noop(session, builder, load_wallet):
    """Repeating the gate without new referrals changes nothing."""
    member_a = await _hold_cp_at_level_seven(session, builder)
    wallet = await load_wallet(session, member_a)
    wallet.total_referrals = 2
    await session.commit()

    gate = UnlockGate(session)
    assert await gate.on_referral_count_changed(member_a) is not None
    await session.commit()
    assert await gate.on_referral_count_changed(member_a) is None
    await session.commit()

    wallet = await load_wallet(session, member_a)
    assert wallet.available_points == Decimal("4.00")
    assert await _history_count(session, member_a) == 1


@pytest.mark.asyncio
async def test_level_never_decreases(session, builder, load_wallet):
    """A lower referral count does not lower the unlocked level."""
    (member_id,) = await builder.chain(1, unlocked_level=20, total_referrals=1)

    assert await UnlockGate(session).on_referral_count_changed(member_id) is None

    wallet = await load_wallet(session, member_id)
    assert wallet.unlocked_level == 20


@pytest.mark.asyncio
async def test_record_new_referral_steps_tiers(session, builder, load_wallet):
    """Each referral raises the level by one tier up to 30."""
    (member_id,) = await builder.chain(1)
    gate = UnlockGate(session)

    levels = []
    for _ in range(6):
        result = await gate.record_new_referral(member_id)
        await session.commit()
        levels.append(result.new_unlocked_level if result else None)

    assert levels == [10, 15, 20, 25, 30, None]
    wallet = await load_wallet(session, member_id)
    assert wallet.total_referrals == 6
    assert wallet.unlocked_level == 30


@pytest.mark.asyncio
async def test_held_cp_above_new_level_stays_on_hold(
    session, builder, load_levels
):
    """One referral unlocks 6-10 only; level 12 CP stays held."""
    chain = await builder.chain(13)
    member_a = chain[0]
    await CommunityPointDistributor(session).distribute(
        chain[12], chain[12], Decimal("50"), DistributionReason.PURCHASE
    )
    await session.commit()

    result = await UnlockGate(session).record_new_referral(member_a)
    await session.commit()

    assert result.new_unlocked_level == 10
    assert result.released_cp_amount == Decimal("0.00")
    levels = await load_levels(session, member_a)
    assert levels[12].onhold_cp == Decimal("1.50")
    assert levels[12].is_locked is True


@pytest.mark.asyncio
async def test_reconciliation_unlocks_lagging_wallets(
    session_maker, session, builder, load_wallet
):
    """The hourly job catches wallets whose level lags their referrals."""
    member_a = await _hold_cp_at_level_seven(session, builder)
    up_to_date = await builder.member(total_referrals=1, unlocked_level=10)
    wallet = await load_wallet(session, member_a)
    wallet.total_referrals = 3
    await session.commit()

    stats = await reconcile_unlocks(session_maker)

    assert stats["checked"] == 1
    assert stats["unlocked"] == 1
    assert stats["failed"] == 0
    assert stats["released_cp"] == Decimal("4.00")

    wallet = await load_wallet(session, member_a)
    assert wallet.unlocked_level == 20
    other = await load_wallet(session, up_to_date)
    assert other.unlocked_level == 10

    again = await reconcile_unlocks(session_maker)
    assert again["checked"] == 0


@pytest.mark.asyncio
async def test_reconciliation_continues_after_member_failure(
    session_maker, session, builder, load_wallet, monkeypatch
):
    """One failing member is counted and the rest of the batch still runs."""
    failing = await builder.member(total_referrals=1)
    healthy = await builder.member(total_referrals=2)
    await session.commit()

    original = UnlockGate.on_referral_count_changed

    async def on_referral_count_changed(self, member_id, previous_referrals=None):
        if member_id == failing:
            raise RuntimeError('constraint failed: {"member_id": %d}' % member_id)
        return await original(self, member_id, previous_referrals)

    monkeypatch.setattr(
        UnlockGate, "on_referral_count_changed", on_referral_count_changed
    )

    stats = await reconcile_unlocks(session_maker)

    assert stats["checked"] == 2
    assert stats["failed"] == 1
    assert stats["unlocked"] == 1
    assert (await load_wallet(session, healthy)).unlocked_level == 15
    assert (await load_wallet(session, failing)).unlocked_level == 5
