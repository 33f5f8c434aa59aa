"""
Member community point repository.

Data access layer for per-level CP balances.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.member_community_point import MemberCommunityPoint
from maxreward.repositories.base import BaseRepository
from maxreward.utils.money import quantize_points


class MemberCommunityPointRepository(BaseRepository[MemberCommunityPoint]):
    """Per-level CP balance repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(MemberCommunityPoint, session)

    async def lock_or_create(
        self, member_id: int, level: int, is_locked: bool
    ) -> MemberCommunityPoint:
        """
        Get (member, level) balance row with a row lock, creating it if absent.

        The insert runs in a SAVEPOINT. If a concurrent transaction created
        the row first, the unique constraint fails, the SAVEPOINT is rolled
        back and the existing row is locked instead.

        Args:
            member_id: Receiver member ID
            level: Upline level
            is_locked: Lock flag for a newly created row

        Returns:
            Locked balance row
        """
        row = await self.get_for_update(member_id=member_id, level=level)
        if row is not None:
            return row

        zero = Decimal("0.00")
        try:
            async with self.session.begin_nested():
                self.session.add(
                    MemberCommunityPoint(
                        member_id=member_id,
                        level=level,
                        total_cp=zero,
                        available_cp=zero,
                        onhold_cp=zero,
                        is_locked=is_locked,
                    )
                )
        except IntegrityError:
            logger.debug(
                f"Community point row for member {member_id} level {level} "
                f"created concurrently"
            )

        row = await self.get_for_update(member_id=member_id, level=level)
        if row is None:
            raise RuntimeError(
                f"Community point row for member {member_id} level {level} "
                f"missing after insert"
            )
        return row

    async def add_points(
        self, row_id: int, amount: Decimal, is_locked: bool
    ) -> None:
        """
        Atomically add CP to total and to the available or on-hold bucket.

        Args:
            row_id: MemberCommunityPoint ID
            amount: CP amount
            is_locked: Add to on-hold instead of available
        """
        values = {"total_cp": MemberCommunityPoint.total_cp + amount}
        if is_locked:
            values["onhold_cp"] = MemberCommunityPoint.onhold_cp + amount
        else:
            values["available_cp"] = MemberCommunityPoint.available_cp + amount

        stmt = (
            update(MemberCommunityPoint)
            .where(MemberCommunityPoint.id == row_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def lock_level_range(
        self, member_id: int, level_from: int, level_to: int
    ) -> list[MemberCommunityPoint]:
        """
        Lock balance rows of a member in a level range.

        Args:
            member_id: Member ID
            level_from: First level (inclusive)
            level_to: Last level (inclusive)

        Returns:
            Locked rows ordered by level
        """
        stmt = (
            select(MemberCommunityPoint)
            .where(
                MemberCommunityPoint.member_id == member_id,
                MemberCommunityPoint.level >= level_from,
                MemberCommunityPoint.level <= level_to,
            )
            .order_by(MemberCommunityPoint.level)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def release_row(self, row_id: int, amount: Decimal) -> None:
        """
        Move on-hold CP of a row into available and mark it unlocked.

        Args:
            row_id: MemberCommunityPoint ID
            amount: On-hold amount read under lock
        """
        stmt = (
            update(MemberCommunityPoint)
            .where(MemberCommunityPoint.id == row_id)
            .values(
                available_cp=MemberCommunityPoint.available_cp + amount,
                onhold_cp=MemberCommunityPoint.onhold_cp - amount,
                is_locked=False,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def get_member_levels(self, member_id: int) -> list[MemberCommunityPoint]:
        """Get all balance rows of a member ordered by level."""
        stmt = (
            select(MemberCommunityPoint)
            .where(MemberCommunityPoint.member_id == member_id)
            .order_by(MemberCommunityPoint.level)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_member_totals(self, member_id: int) -> dict[str, Decimal]:
        """
        Sum CP balances of a member across levels.

        Returns:
            Dict with total_cp, available_cp and onhold_cp
        """
        stmt = select(
            func.coalesce(func.sum(MemberCommunityPoint.total_cp), 0),
            func.coalesce(func.sum(MemberCommunityPoint.available_cp), 0),
            func.coalesce(func.sum(MemberCommunityPoint.onhold_cp), 0),
        ).where(MemberCommunityPoint.member_id == member_id)
        result = await self.session.execute(stmt)
        total, available, onhold = result.one()
        return {
            "total_cp": quantize_points(total),
            "available_cp": quantize_points(available),
            "onhold_cp": quantize_points(onhold),
        }
