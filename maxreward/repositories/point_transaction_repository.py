"""
Point transaction repository.

Data access layer for the general PP/RP/CP/CR transaction log.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.enums import PointType
from maxreward.models.point_transaction import PointTransaction
from maxreward.repositories.base import BaseRepository


class PointTransactionRepository(BaseRepository[PointTransaction]):
    """Point transaction repository (append-only)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize point transaction repository."""
        super().__init__(PointTransaction, session)

    async def get_member_transactions(
        self,
        member_id: int,
        kind: PointType | None = None,
        limit: int = 50,
    ) -> list[PointTransaction]:
        """
        Get latest point transactions of a member.

        Args:
            member_id: Member ID
            kind: Optional point kind filter
            limit: Max rows

        Returns:
            Transactions, newest first
        """
        stmt = select(PointTransaction).where(
            PointTransaction.member_id == member_id
        )
        if kind is not None:
            stmt = stmt.where(PointTransaction.transaction_type == kind)
        stmt = stmt.order_by(PointTransaction.id.desc()).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
