"""
CP unlock history repository.

Data access layer for CpUnlockHistory model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.cp_unlock_history import CpUnlockHistory
from maxreward.repositories.base import BaseRepository


class CpUnlockHistoryRepository(BaseRepository[CpUnlockHistory]):
    """Unlock history repository (append-only)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize unlock history repository."""
        super().__init__(CpUnlockHistory, session)

    async def get_member_history(self, member_id: int) -> list[CpUnlockHistory]:
        """
        Get unlock events of a member, newest first.

        Args:
            member_id: Member ID

        Returns:
            Unlock history rows
        """
        stmt = (
            select(CpUnlockHistory)
            .where(CpUnlockHistory.member_id == member_id)
            .order_by(CpUnlockHistory.created_at.desc(), CpUnlockHistory.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
