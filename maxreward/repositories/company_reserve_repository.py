"""
Company reserve repository.

Data access layer for the CompanyReserve singleton.
"""

from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.company_reserve import COMPANY_RESERVE_ID, CompanyReserve
from maxreward.repositories.base import BaseRepository


class CompanyReserveRepository(BaseRepository[CompanyReserve]):
    """Company reserve repository. Always addresses the row with the fixed ID."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize company reserve repository."""
        super().__init__(CompanyReserve, session)

    async def get_reserve(self) -> CompanyReserve | None:
        """Get the reserve row by its fixed key."""
        return await self.get_by_id(COMPANY_RESERVE_ID)

    async def get_or_create(self) -> CompanyReserve:
        """
        Get the reserve row, creating it with zero points if absent.

        Returns:
            Company reserve
        """
        reserve = await self.get_reserve()
        if reserve is None:
            reserve = await self.create(
                id=COMPANY_RESERVE_ID, cr_points=Decimal("0.00")
            )
        return reserve

    async def add_points(self, amount: Decimal) -> Decimal:
        """
        Atomically add CR points to the reserve.

        Args:
            amount: CR points to add

        Returns:
            Reserve balance after the update
        """
        await self.get_or_create()
        stmt = (
            update(CompanyReserve)
            .where(CompanyReserve.id == COMPANY_RESERVE_ID)
            .values(cr_points=CompanyReserve.cr_points + amount)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

        reserve = await self.get_for_update(id=COMPANY_RESERVE_ID)
        return reserve.cr_points
