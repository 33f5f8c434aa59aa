"""Integration tests for purchase rewards."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from maxreward.models import CompanyReserve, CpDistributionPool, MemberWallet
from maxreward.services.distribution.purchase import PurchaseRewardService
from maxreward.utils.exceptions import (
    MissingWalletError,
    PurchaseAlreadyRewardedError,
)


@pytest.mark.asyncio
async def test_purchase_rewards_buyer_sponsor_and_upline(
    session, builder, load_wallet
):
    """Buyer gets PP, sponsor gets RP, the upline shares CP."""
    root, sponsor, buyer = await builder.chain(3)

    result = await PurchaseRewardService(session).reward_purchase(
        buyer, purchase_id=1001, purchase_points=Decimal("100")
    )

    assert result.rp_receiver_id == sponsor
    assert [c.member_id for c in result.distribution.credits] == [sponsor, root]

    buyer_wallet = await load_wallet(session, buyer)
    assert buyer_wallet.total_pp == Decimal("10.00")
    assert buyer_wallet.total_cp == Decimal("0.00")

    sponsor_wallet = await load_wallet(session, sponsor)
    assert sponsor_wallet.total_rp == Decimal("20.00")
    assert sponsor_wallet.total_cp == Decimal("2.50")

    root_wallet = await load_wallet(session, root)
    assert root_wallet.total_cp == Decimal("2.50")
    assert root_wallet.total_rp == Decimal("0.00")

    reserve = await session.get(CompanyReserve, 1, populate_existing=True)
    assert reserve.cr_points == Decimal("20.00")

    pool = await session.get(CpDistributionPool, result.distribution.pool_id)
    assert pool.purchase_id == 1001
    assert pool.total_transaction_amount == Decimal("100.00")


@pytest.mark.asyncio
async def test_purchase_is_rewarded_once(session, builder, load_wallet):
    """A second reward of the same purchase is rejected."""
    _, buyer = await builder.chain(2)
    service = PurchaseRewardService(session)

    await service.reward_purchase(buyer, 7, Decimal("100"))
    with pytest.raises(PurchaseAlreadyRewardedError):
        await service.reward_purchase(buyer, 7, Decimal("100"))

    wallet = await load_wallet(session, buyer)
    assert wallet.total_pp == Decimal("10.00")
    pools = await session.scalar(
        select(func.count(CpDistributionPool.id)).where(
            CpDistributionPool.purchase_id == 7
        )
    )
    assert pools == 1


@pytest.mark.asyncio
async def test_buyer_without_wallet_is_rejected(session, builder):
    """A buyer without wallet cannot be rewarded."""
    sponsor = await builder.member()
    buyer = await builder.member(sponsor, with_wallet=False)
    await session.commit()

    with pytest.raises(MissingWalletError):
        await PurchaseRewardService(session).reward_purchase(
            buyer, 8, Decimal("100")
        )


@pytest.mark.asyncio
async def test_stale_session_does_not_lose_update(session_maker, builder):
    """Two purchases each giving M 4.00 at level 7 add exactly 8.00.

    SQLite cannot run the two purchases truly interleaved, so they run
    one after the other: the stale session reads M's wallet before the
    other one commits, then applies its own credit. This exercises the
    atomic `col = col + delta` update rather than row-lock contention.
    """
    chain = await builder.chain(8)
    member_m, buyer = chain[0], chain[7]

    async with session_maker() as stale, session_maker() as fresh:
        preloaded = (
            await stale.execute(
                select(MemberWallet).where(MemberWallet.member_id == member_m)
            )
        ).scalar_one()
        assert preloaded.total_cp == Decimal("0.00")

        await PurchaseRewardService(fresh).reward_purchase(
            buyer, 1, Decimal("100")
        )
        await PurchaseRewardService(stale).reward_purchase(
            buyer, 2, Decimal("100")
        )

    async with session_maker() as check:
        wallet = (
            await check.execute(
                select(MemberWallet).where(MemberWallet.member_id == member_m)
            )
        ).scalar_one()
        assert wallet.total_cp == Decimal("8.00")
        assert wallet.onhold_points == Decimal("8.00")
        assert wallet.total_points == Decimal("8.00")
