"""
CP distribution pool repository.

Data access layer for CpDistributionPool audit rows.
"""

from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.cp_distribution_pool import CpDistributionPool
from maxreward.repositories.base import BaseRepository


class CpDistributionPoolRepository(BaseRepository[CpDistributionPool]):
    """Distribution pool repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize distribution pool repository."""
        super().__init__(CpDistributionPool, session)

    async def get_by_ref(self, transaction_ref: str) -> CpDistributionPool | None:
        """Get pool by its transaction reference."""
        return await self.get_by(transaction_ref=transaction_ref)

    async def set_distributed(self, pool_id: int, amount: Decimal) -> None:
        """
        Store the CP actually credited by the walk.

        Args:
            pool_id: Pool ID
            amount: Sum of CP transactions of the event
        """
        stmt = (
            update(CpDistributionPool)
            .where(CpDistributionPool.id == pool_id)
            .values(total_cp_distributed=amount)
        )
        await self.session.execute(stmt)
