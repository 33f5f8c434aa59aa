"""
Community point reporting service.

Read-only queries over the CP ledger, per-level balances, unlock history
and distribution pools.
"""

import math
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.constants import MAX_CP_LEVELS
from maxreward.models.cp_distribution_pool import CpDistributionPool
from maxreward.models.cp_transaction import CpTransaction
from maxreward.models.cp_unlock_history import CpUnlockHistory
from maxreward.models.enums import CpTransactionStatus, PointType
from maxreward.models.point_transaction import PointTransaction
from maxreward.repositories.cp_distribution_pool_repository import (
    CpDistributionPoolRepository,
)
from maxreward.repositories.cp_transaction_repository import (
    CpTransactionFilters,
    CpTransactionRepository,
)
from maxreward.repositories.cp_unlock_history_repository import (
    CpUnlockHistoryRepository,
)
from maxreward.repositories.member_community_point_repository import (
    MemberCommunityPointRepository,
)
from maxreward.repositories.member_wallet_repository import (
    MemberWalletRepository,
)
from maxreward.repositories.point_transaction_repository import (
    PointTransactionRepository,
)
from maxreward.services.base_service import BaseService
from maxreward.services.unlock.gate import (
    referrals_needed_for_next_tier,
    unlocked_level_for,
)
from maxreward.utils.exceptions import MissingWalletError
from maxreward.utils.money import quantize_points


MAX_PER_PAGE = 100


class CpReportService(BaseService):
    """CP reporting queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize report service."""
        super().__init__(session)
        self.cp_tx_repo = CpTransactionRepository(session)
        self.member_cp_repo = MemberCommunityPointRepository(session)
        self.history_repo = CpUnlockHistoryRepository(session)
        self.pool_repo = CpDistributionPoolRepository(session)
        self.wallet_repo = MemberWalletRepository(session)
        self.point_tx_repo = PointTransactionRepository(session)

    async def list_transactions(
        self,
        filters: CpTransactionFilters | None = None,
        page: int = 1,
        per_page: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict[str, Any]:
        """
        List CP transactions with filters and pagination.

        Args:
            filters: Status, type, member, purchase, level, lock and date filters
            page: Page number starting at 1
            per_page: Page size (max 100)
            sort_by: Sort column
            sort_order: "asc" or "desc"

        Returns:
            Dict with items, total, page, per_page and pages

        Raises:
            ValueError: Invalid page, page size, sort column or order
        """
        if page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= per_page <= MAX_PER_PAGE:
            raise ValueError(f"per_page must be between 1 and {MAX_PER_PAGE}")
        if sort_order not in ("asc", "desc"):
            raise ValueError("sort_order must be 'asc' or 'desc'")

        items, total = await self.cp_tx_repo.find_filtered(
            filters or CpTransactionFilters(),
            limit=per_page,
            offset=(page - 1) * per_page,
            sort_by=sort_by,
            descending=sort_order == "desc",
        )

        return {
            "items": items,
            "total": total,
            "page": page,
            "per_page": per_page,
            "pages": math.ceil(total / per_page) if total else 0,
        }

    async def get_statistics(
        self, filters: CpTransactionFilters | None = None
    ) -> dict[str, Any]:
        """
        Get CP ledger totals per status.

        Returns:
            Dict with transaction count, CP total and per-status count/amount
        """
        by_status = await self.cp_tx_repo.sum_by_status(filters)

        total_count = sum(count for count, _ in by_status.values())
        total_cp = quantize_points(
            sum((amount for _, amount in by_status.values()), Decimal("0"))
        )

        return {
            "total_transactions": total_count,
            "total_cp": total_cp,
            "by_status": {
                str(status): {"count": count, "amount": amount}
                for status, (count, amount) in by_status.items()
            },
            "total_available": by_status[CpTransactionStatus.AVAILABLE][1],
            "total_onhold": by_status[CpTransactionStatus.ONHOLD][1],
            "total_released": by_status[CpTransactionStatus.RELEASED][1],
        }

    async def get_member_cp_summary(self, member_id: int) -> dict[str, Any]:
        """
        Get per-level CP breakdown of a member.

        Raises:
            MissingWalletError: Member has no wallet
        """
        wallet = await self.wallet_repo.get_by_member(member_id)
        if wallet is None:
            raise MissingWalletError(member_id)

        levels = await self.member_cp_repo.get_member_levels(member_id)
        totals = await self.member_cp_repo.get_member_totals(member_id)

        return {
            "member_id": member_id,
            "unlocked_level": wallet.unlocked_level,
            "total_referrals": wallet.total_referrals,
            **totals,
            "locked_levels": sum(1 for row in levels if row.is_locked),
            "unlocked_levels": sum(1 for row in levels if not row.is_locked),
            "levels": [
                {
                    "level": row.level,
                    "total_cp": quantize_points(row.total_cp),
                    "available_cp": quantize_points(row.available_cp),
                    "onhold_cp": quantize_points(row.onhold_cp),
                    "is_locked": row.is_locked,
                }
                for row in levels
            ],
        }

    async def get_unlock_history(self, member_id: int) -> list[CpUnlockHistory]:
        """Get unlock events of a member, newest first."""
        return await self.history_repo.get_member_history(member_id)

    async def get_unlock_progress(self, member_id: int) -> dict[str, Any]:
        """
        Get a member's position in the unlock tiers.

        Returns:
            Dict with referrals, unlocked level, next tier and what is missing

        Raises:
            MissingWalletError: Member has no wallet
        """
        wallet = await self.wallet_repo.get_by_member(member_id)
        if wallet is None:
            raise MissingWalletError(member_id)

        needed = referrals_needed_for_next_tier(wallet.total_referrals)
        next_level = (
            unlocked_level_for(wallet.total_referrals + needed)
            if needed is not None
            else None
        )

        return {
            "member_id": member_id,
            "total_referrals": wallet.total_referrals,
            "unlocked_level": wallet.unlocked_level,
            "locked_levels": MAX_CP_LEVELS - wallet.unlocked_level,
            "next_unlock_level": next_level,
            "referrals_needed": needed,
            "onhold_points": quantize_points(wallet.onhold_points),
        }

    async def get_point_transactions(
        self,
        member_id: int,
        kind: PointType | None = None,
        limit: int = 50,
    ) -> list[PointTransaction]:
        """
        Get the general point log of a member.

        Args:
            member_id: Member ID
            kind: Only pp, rp or cp rows when given
            limit: Max rows

        Returns:
            Transactions, newest first
        """
        return await self.point_tx_repo.get_member_transactions(
            member_id, kind=kind, limit=limit
        )

    async def get_distribution_pool(self, pool_id: int) -> dict[str, Any] | None:
        """
        Get a distribution event with its ledger rows.

        Returns:
            Dict with pool, transactions and undistributed CP, or None
        """
        pool = await self.pool_repo.get_by_id(pool_id)
        if pool is None:
            return None
        return await self._pool_view(pool)

    async def get_distribution_pool_by_ref(
        self, transaction_ref: str
    ) -> dict[str, Any] | None:
        """Get a distribution event by its CP-... reference."""
        pool = await self.pool_repo.get_by_ref(transaction_ref)
        if pool is None:
            return None
        return await self._pool_view(pool)

    async def _pool_view(self, pool: CpDistributionPool) -> dict[str, Any]:
        transactions: list[CpTransaction] = await self.cp_tx_repo.find_by_pool(
            pool.id
        )
        return {
            "pool": pool,
            "transactions": transactions,
            "undistributed_cp": quantize_points(pool.undistributed_cp),
        }
