"""
Community point ledger.

Writes CpTransaction rows and keeps per-level MemberCommunityPoint
balances in step with them.
"""

from datetime import UTC, datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.cp_transaction import CpTransaction
from maxreward.models.enums import CpTransactionStatus, CpTransactionType
from maxreward.repositories.cp_transaction_repository import (
    CpTransactionRepository,
)
from maxreward.repositories.member_community_point_repository import (
    MemberCommunityPointRepository,
)


class CommunityPointLedger:
    """Ledger writer. Does no percentage math and no tree traversal."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger."""
        self.session = session
        self.cp_tx_repo = CpTransactionRepository(session)
        self.member_cp_repo = MemberCommunityPointRepository(session)

    async def record_distribution(
        self,
        source_member_id: int,
        receiver_member_id: int,
        level: int,
        percentage: Decimal,
        amount: Decimal,
        is_locked: bool,
        purchase_id: int | None = None,
        pool_id: int | None = None,
        total_referrals: int = 0,
    ) -> CpTransaction:
        """
        Record CP credited to one receiver at one level.

        Args:
            source_member_id: Member whose event is distributed
            receiver_member_id: Upline member receiving CP
            level: Distance of the receiver from the source
            percentage: Level percentage applied
            amount: CP amount, already rounded
            is_locked: Level is above the receiver's unlocked level
            purchase_id: Purchase that triggered the event
            pool_id: CpDistributionPool of the event
            total_referrals: Receiver's direct referrals at credit time

        Returns:
            Created ledger row
        """
        now = datetime.now(UTC)
        status = (
            CpTransactionStatus.ONHOLD if is_locked else CpTransactionStatus.AVAILABLE
        )

        transaction = await self.cp_tx_repo.create(
            cp_distribution_pool_id=pool_id,
            purchase_id=purchase_id,
            source_member_id=source_member_id,
            receiver_member_id=receiver_member_id,
            level=level,
            cp_percentage=percentage,
            cp_amount=amount,
            is_locked=is_locked,
            total_referrals=total_referrals,
            status=status,
            transaction_type=CpTransactionType.EARNED,
            locked_at=now if is_locked else None,
        )

        balance = await self.member_cp_repo.lock_or_create(
            receiver_member_id, level, is_locked
        )
        await self.member_cp_repo.add_points(balance.id, amount, is_locked)

        logger.debug(
            "CP recorded",
            extra={
                "receiver_member_id": receiver_member_id,
                "level": level,
                "amount": str(amount),
                "status": str(status),
            },
        )
        return transaction
