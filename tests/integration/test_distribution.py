"""Integration tests for the CP distribution orchestrator."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from maxreward.models import (
    CpDistributionPool,
    CpTransaction,
    CpTransactionStatus,
    CpTransactionType,
    DistributionReason,
    Notification,
    NotificationType,
    PointTransaction,
)
from maxreward.repositories import ReferralRepository
from maxreward.services.distribution.orchestrator import CommunityPointDistributor
from maxreward.services.level_config_service import LevelConfigService
from maxreward.services.notification_service import NotificationService
from maxreward.utils.exceptions import GraphIntegrityError


class TestLevelShare:
    """Share calculation and gating per level."""

    @pytest.mark.asyncio
    async def test_locked_level_seven_gets_four_on_hold(
        self, session, builder, load_wallet, load_levels
    ):
        """A at level 7 with unlocked level 5 receives 8% of 50 on hold."""
        chain = await builder.chain(8)
        member_a, source = chain[0], chain[7]

        result = await CommunityPointDistributor(session).distribute(
            source_member_id=source,
            trigger_member_id=source,
            total_pool=Decimal("50"),
            reason=DistributionReason.PURCHASE,
        )
        await session.commit()

        credit = next(c for c in result.credits if c.member_id == member_a)
        assert credit.level == 7
        assert credit.percentage == Decimal("8.00")
        assert credit.amount == Decimal("4.00")
        assert credit.is_locked is True

        wallet = await load_wallet(session, member_a)
        assert wallet.onhold_points == Decimal("4.00")
        assert wallet.available_points == Decimal("0.00")
        assert wallet.total_cp == Decimal("4.00")
        assert wallet.total_points == Decimal("4.00")

        levels = await load_levels(session, member_a)
        assert levels[7].onhold_cp == Decimal("4.00")
        assert levels[7].available_cp == Decimal("0.00")
        assert levels[7].is_locked is True

        tx = await session.get(CpTransaction, credit.cp_transaction_id)
        assert tx.status == CpTransactionStatus.ONHOLD
        assert tx.transaction_type == CpTransactionType.EARNED
        assert tx.locked_at is not None
        assert tx.released_at is None

    @pytest.mark.asyncio
    async def test_unlocked_levels_are_available(
        self, session, builder, load_wallet
    ):
        """Levels within the unlocked range are credited as available."""
        chain = await builder.chain(4)

        result = await CommunityPointDistributor(session).distribute(
            chain[3], chain[3], Decimal("50"), DistributionReason.PURCHASE
        )
        await session.commit()

        assert [c.level for c in result.credits] == [1, 2, 3]
        assert all(not c.is_locked for c in result.credits)
        assert result.total_onhold == Decimal("0.00")

        sponsor = await load_wallet(session, chain[2])
        assert sponsor.available_points == Decimal("2.50")
        assert sponsor.onhold_points == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_trigger_member_is_skipped(self, session, builder):
        """An ancestor equal to the trigger member receives nothing."""
        chain = await builder.chain(6)

        result = await CommunityPointDistributor(session).distribute(
            source_member_id=chain[5],
            trigger_member_id=chain[3],
            total_pool=Decimal("50"),
            reason=DistributionReason.REGISTRATION,
        )

        receivers = [c.member_id for c in result.credits]
        assert chain[3] not in receivers
        assert [c.level for c in result.credits] == [1, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_zero_percent_levels_are_skipped(self, session, builder):
        """Levels whose percentage is 0 produce no ledger rows."""
        await LevelConfigService(session).bulk_replace(
            [
                {"level_from": 1, "level_to": 3, "cp_percentage_per_level": "15.00", "total_percentage_for_range": "45.00"},
                {"level_from": 4, "level_to": 6, "cp_percentage_per_level": "10.00", "total_percentage_for_range": "30.00"},
                {"level_from": 7, "level_to": 9, "cp_percentage_per_level": "5.00", "total_percentage_for_range": "15.00"},
                {"level_from": 10, "level_to": 20, "cp_percentage_per_level": "0.00", "total_percentage_for_range": "0.00"},
                {"level_from": 21, "level_to": 30, "cp_percentage_per_level": "1.00", "total_percentage_for_range": "10.00"},
            ]
        )
        chain = await builder.chain(23)

        result = await CommunityPointDistributor(session).distribute(
            chain[22], chain[22], Decimal("100"), DistributionReason.PURCHASE
        )

        levels = [c.level for c in result.credits]
        assert levels == [1, 2, 3, 4, 5, 6, 7, 8, 9, 21, 22]


class TestChainDepth:
    """Depth limits and conservation."""

    @pytest.mark.asyncio
    async def test_only_thirty_ancestors_of_thirty_five_receive(
        self, session, builder, load_wallet
    ):
        """A 35-deep upline pays exactly levels 1-30."""
        chain = await builder.chain(36)
        source = chain[35]

        result = await CommunityPointDistributor(session).distribute(
            source, source, Decimal("50"), DistributionReason.PURCHASE
        )
        await session.commit()

        assert [c.level for c in result.credits] == list(range(1, 31))
        for member_id in chain[0:5]:
            wallet = await load_wallet(session, member_id)
            assert wallet.total_cp == Decimal("0.00")

        count = await session.scalar(
            select(func.count(CpTransaction.id)).where(
                CpTransaction.source_member_id == source
            )
        )
        assert count == 30

    @pytest.mark.asyncio
    async def test_full_chain_distributes_whole_pool(self, session, builder):
        """With 30 ancestors the ledger rows add up to the whole CP pool."""
        chain = await builder.chain(31)

        result = await CommunityPointDistributor(session).distribute(
            chain[30], chain[30], Decimal("50"), DistributionReason.REGISTRATION
        )
        await session.commit()

        total = await session.scalar(
            select(func.sum(CpTransaction.cp_amount)).where(
                CpTransaction.cp_distribution_pool_id == result.pool_id
            )
        )
        assert abs(Decimal(str(total)) - Decimal("50.00")) <= Decimal("0.30")
        assert result.total_distributed == Decimal("50.00")
        assert result.undistributed == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_root_member_distributes_nothing(self, session, builder):
        """A member without sponsor has an empty upline."""
        (root,) = await builder.chain(1)

        result = await CommunityPointDistributor(session).distribute(
            root, root, Decimal("50"), DistributionReason.PURCHASE
        )

        assert result.credits == []
        assert result.undistributed == Decimal("50.00")


class TestBalanceConsistency:
    """Per-level balances match ledger and wallet."""

    @pytest.mark.asyncio
    async def test_level_totals_equal_available_plus_onhold(
        self, session, builder, load_levels
    ):
        """total_cp == available_cp + onhold_cp for every level row."""
        chain = await builder.chain(12)
        distributor = CommunityPointDistributor(session)
        for _ in range(3):
            await distributor.distribute(
                chain[11], chain[11], Decimal("33.33"), DistributionReason.PURCHASE
            )
        await session.commit()

        for member_id in chain[:11]:
            for row in (await load_levels(session, member_id)).values():
                assert row.total_cp == row.available_cp + row.onhold_cp

    @pytest.mark.asyncio
    async def test_pool_audit_row_and_point_log(self, session, builder):
        """One pool row per event; each CP credit logged with snapshots."""
        chain = await builder.chain(8)

        result = await CommunityPointDistributor(session).distribute(
            chain[7],
            chain[7],
            Decimal("50"),
            DistributionReason.PURCHASE,
            purchase_id=77,
            total_transaction_amount=Decimal("100"),
        )
        await session.commit()

        pool = await session.get(CpDistributionPool, result.pool_id)
        assert pool.purchase_id == 77
        assert pool.total_cp_amount == Decimal("50.00")
        assert pool.total_transaction_amount == Decimal("100.00")
        assert pool.total_cp_distributed == result.total_distributed
        assert pool.transaction_ref.startswith("CP-")

        logged = (
            await session.execute(
                select(PointTransaction).where(
                    PointTransaction.member_id == chain[0],
                    PointTransaction.transaction_type == "cp",
                )
            )
        ).scalar_one()
        assert logged.transaction_points == Decimal("4.00")
        assert logged.bop == Decimal("4.00")
        assert logged.transaction_reason.endswith("[ON HOLD]")

        notified = await session.scalar(
            select(func.count(Notification.id)).where(
                Notification.type == NotificationType.COMMUNITY_POINTS_EARNED
            )
        )
        assert notified == 7


class TestSkipsAndFailures:
    """Recovered skips and aborting failures."""

    @pytest.mark.asyncio
    async def test_missing_wallet_level_is_skipped(self, session, builder):
        """An ancestor without wallet is skipped; others are still paid."""
        root = await builder.member()
        no_wallet = await builder.member(root, with_wallet=False)
        source = await builder.member(no_wallet)
        await session.commit()

        result = await CommunityPointDistributor(session).distribute(
            source, source, Decimal("50"), DistributionReason.PURCHASE
        )

        assert result.missing_wallet_member_ids == [no_wallet]
        assert [(c.member_id, c.level) for c in result.credits] == [(root, 2)]

    @pytest.mark.asyncio
    async def test_cycle_aborts_distribution(self, session, builder):
        """A referral cycle raises GraphIntegrityError."""
        first = await builder.member()
        second = await builder.member(first)
        await ReferralRepository(session).create(
            parent_member_id=second, child_member_id=first
        )
        await session.commit()

        with pytest.raises(GraphIntegrityError):
            await CommunityPointDistributor(session).distribute(
                second, second, Decimal("50"), DistributionReason.PURCHASE
            )


class TestNotificationFailures:
    """Notification delivery never aborts a distribution."""

    @pytest.mark.asyncio
    async def test_dispatcher_error_with_json_body_is_swallowed(
        self, session, builder, load_wallet
    ):
        """A dispatcher error whose text holds braces is logged, credits land."""
        chain = await builder.chain(3)

        async def failing_dispatcher(notification):
            raise RuntimeError('WhatsApp API 429: {"error": "rate limited"}')

        notifications = NotificationService(session, dispatcher=failing_dispatcher)
        result = await CommunityPointDistributor(session, notifications).distribute(
            chain[2], chain[2], Decimal("50"), DistributionReason.PURCHASE
        )
        await session.commit()

        assert [c.level for c in result.credits] == [1, 2]
        wallet = await load_wallet(session, chain[1])
        assert wallet.total_cp == Decimal("2.50")
        stored = await session.scalar(
            select(func.count(Notification.id)).where(
                Notification.member_id == chain[1]
            )
        )
        assert stored == 1
