"""
Referral repository.

Data access layer for Referral edges.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.referral import Referral
from maxreward.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_parent_id(self, child_member_id: int) -> int | None:
        """
        Get sponsor of a member.

        Args:
            child_member_id: Member ID

        Returns:
            Sponsor member ID or None for a root member
        """
        stmt = select(Referral.parent_member_id).where(
            Referral.child_member_id == child_member_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_direct_referrals(self, parent_member_id: int) -> int:
        """
        Count members directly sponsored by a member.

        Args:
            parent_member_id: Sponsor member ID

        Returns:
            Number of direct referrals
        """
        stmt = select(func.count(Referral.id)).where(
            Referral.parent_member_id == parent_member_id
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0
