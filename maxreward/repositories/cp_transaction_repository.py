"""
CP transaction repository.

Data access layer for the append-only community point ledger.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.cp_transaction import CpTransaction
from maxreward.models.enums import CpTransactionStatus, CpTransactionType
from maxreward.repositories.base import BaseRepository
from maxreward.utils.money import quantize_points


# Columns a listing can be sorted by
SORTABLE_COLUMNS = frozenset(
    {"id", "created_at", "cp_amount", "level", "status", "released_at"}
)


@dataclass
class CpTransactionFilters:
    """Optional filters for ledger queries. None means no filter."""

    status: CpTransactionStatus | None = None
    transaction_type: CpTransactionType | None = None
    source_member_id: int | None = None
    receiver_member_id: int | None = None
    purchase_id: int | None = None
    level: int | None = None
    is_locked: bool | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class CpTransactionRepository(BaseRepository[CpTransaction]):
    """CP ledger repository. Rows are only inserted or released."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize CP transaction repository."""
        super().__init__(CpTransaction, session)

    async def release_onhold_range(
        self,
        receiver_member_id: int,
        level_from: int,
        level_to: int,
        released_at: datetime,
    ) -> tuple[int, Decimal]:
        """
        Flip on-hold rows of a member in a level range to released.

        Only rows still on hold match, so a repeated call changes nothing.

        Args:
            receiver_member_id: Member ID
            level_from: First newly unlocked level (inclusive)
            level_to: Last newly unlocked level (inclusive)
            released_at: Release timestamp

        Returns:
            Tuple of (released row count, released CP sum)
        """
        conditions = (
            CpTransaction.receiver_member_id == receiver_member_id,
            CpTransaction.status == CpTransactionStatus.ONHOLD,
            CpTransaction.level >= level_from,
            CpTransaction.level <= level_to,
        )

        sum_stmt = select(
            func.count(CpTransaction.id),
            func.coalesce(func.sum(CpTransaction.cp_amount), 0),
        ).where(*conditions)
        count, amount = (await self.session.execute(sum_stmt)).one()

        if not count:
            return 0, Decimal("0.00")

        stmt = (
            update(CpTransaction)
            .where(*conditions)
            .values(
                status=CpTransactionStatus.RELEASED,
                transaction_type=CpTransactionType.UNLOCKED,
                released_at=released_at,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

        return count, quantize_points(amount)

    def _apply_filters(
        self, stmt: Select, filters: CpTransactionFilters
    ) -> Select:
        """Add WHERE clauses for every set filter."""
        if filters.status is not None:
            stmt = stmt.where(CpTransaction.status == filters.status)
        if filters.transaction_type is not None:
            stmt = stmt.where(
                CpTransaction.transaction_type == filters.transaction_type
            )
        if filters.source_member_id is not None:
            stmt = stmt.where(
                CpTransaction.source_member_id == filters.source_member_id
            )
        if filters.receiver_member_id is not None:
            stmt = stmt.where(
                CpTransaction.receiver_member_id == filters.receiver_member_id
            )
        if filters.purchase_id is not None:
            stmt = stmt.where(CpTransaction.purchase_id == filters.purchase_id)
        if filters.level is not None:
            stmt = stmt.where(CpTransaction.level == filters.level)
        if filters.is_locked is not None:
            stmt = stmt.where(CpTransaction.is_locked == filters.is_locked)
        if filters.date_from is not None:
            stmt = stmt.where(CpTransaction.created_at >= filters.date_from)
        if filters.date_to is not None:
            stmt = stmt.where(CpTransaction.created_at <= filters.date_to)
        return stmt

    async def find_filtered(
        self,
        filters: CpTransactionFilters,
        limit: int,
        offset: int = 0,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> tuple[list[CpTransaction], int]:
        """
        Find ledger rows matching filters with pagination.

        Args:
            filters: Query filters
            limit: Page size
            offset: Rows to skip
            sort_by: Column name from SORTABLE_COLUMNS
            descending: Sort direction

        Returns:
            Tuple of (page rows, total matching count)

        Raises:
            ValueError: Unknown sort column
        """
        if sort_by not in SORTABLE_COLUMNS:
            raise ValueError(f"Cannot sort CP transactions by {sort_by!r}")

        count_stmt = self._apply_filters(
            select(func.count(CpTransaction.id)), filters
        )
        total = (await self.session.execute(count_stmt)).scalar() or 0

        column = getattr(CpTransaction, sort_by)
        order = column.desc() if descending else column.asc()
        stmt = (
            self._apply_filters(select(CpTransaction), filters)
            .order_by(order, CpTransaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def sum_by_status(
        self, filters: CpTransactionFilters | None = None
    ) -> dict[CpTransactionStatus, tuple[int, Decimal]]:
        """
        Count and sum CP per status.

        Args:
            filters: Optional filters

        Returns:
            Status -> (row count, CP sum); every status is present
        """
        stmt = select(
            CpTransaction.status,
            func.count(CpTransaction.id),
            func.coalesce(func.sum(CpTransaction.cp_amount), 0),
        ).group_by(CpTransaction.status)
        if filters is not None:
            stmt = self._apply_filters(stmt, filters)

        totals = {
            status: (0, Decimal("0.00")) for status in CpTransactionStatus
        }
        result = await self.session.execute(stmt)
        for status, count, amount in result.all():
            totals[CpTransactionStatus(status)] = (count, quantize_points(amount))
        return totals

    async def find_by_pool(self, pool_id: int) -> list[CpTransaction]:
        """Get ledger rows of a distribution event ordered by level."""
        stmt = (
            select(CpTransaction)
            .where(CpTransaction.cp_distribution_pool_id == pool_id)
            .order_by(CpTransaction.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
