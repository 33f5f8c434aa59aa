"""
Member wallet repository.

Data access layer for MemberWallet model.
"""

from decimal import Decimal

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.constants import UNLOCK_TIERS
from maxreward.models.member_wallet import MemberWallet
from maxreward.repositories.base import BaseRepository


class MemberWalletRepository(BaseRepository[MemberWallet]):
    """Member wallet repository with locking and atomic balance updates."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize member wallet repository."""
        super().__init__(MemberWallet, session)

    async def get_by_member(self, member_id: int) -> MemberWallet | None:
        """Get wallet of a member without locking."""
        return await self.get_by(member_id=member_id)

    async def lock_by_member(self, member_id: int) -> MemberWallet | None:
        """
        Get wallet of a member with a row lock.

        Args:
            member_id: Member ID

        Returns:
            Locked, freshly loaded wallet or None
        """
        return await self.get_for_update(member_id=member_id)

    async def apply_deltas(self, member_id: int, **deltas: Decimal | int) -> bool:
        """
        Atomically add deltas to wallet columns.

        Executes UPDATE ... SET col = col + delta so concurrent
        transactions never overwrite each other's increments.

        Args:
            member_id: Member ID
            **deltas: Column name -> amount to add (negative to subtract)

        Returns:
            True if a wallet row was updated
        """
        values = {
            column: getattr(MemberWallet, column) + delta
            for column, delta in deltas.items()
            if delta
        }
        if not values:
            return True

        stmt = (
            update(MemberWallet)
            .where(MemberWallet.member_id == member_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def raise_unlocked_level(self, member_id: int, new_level: int) -> bool:
        """
        Raise unlocked level, never lowering it.

        Args:
            member_id: Member ID
            new_level: Target unlocked level

        Returns:
            True if the level was raised
        """
        stmt = (
            update(MemberWallet)
            .where(
                MemberWallet.member_id == member_id,
                MemberWallet.unlocked_level < new_level,
            )
            .values(unlocked_level=new_level)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def find_pending_unlock_member_ids(self, limit: int) -> list[int]:
        """
        Find members whose referral count allows a higher unlocked level.

        The tier table is evaluated in SQL with a CASE expression.

        Args:
            limit: Maximum number of member IDs

        Returns:
            Member IDs ordered by ID
        """
        max_count = max(UNLOCK_TIERS)
        expected_level = case(
            *[
                (MemberWallet.total_referrals == count, level)
                for count, level in sorted(UNLOCK_TIERS.items())
                if count < max_count
            ],
            else_=UNLOCK_TIERS[max_count],
        )

        stmt = (
            select(MemberWallet.member_id)
            .where(MemberWallet.unlocked_level < expected_level)
            .order_by(MemberWallet.member_id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]
