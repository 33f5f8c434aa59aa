"""
Unlock gate.

Maps a member's direct referral count to the deepest upline level they
may receive CP for, and releases held CP when that level rises.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.constants import UNLOCK_TIERS
from maxreward.models.cp_unlock_history import CpUnlockHistory
from maxreward.repositories.cp_transaction_repository import (
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
from maxreward.services.base_service import BaseService
from maxreward.services.notification_service import NotificationService
from maxreward.services.wallet_service import WalletService
from maxreward.utils.money import quantize_points


_MAX_TIER_COUNT = max(UNLOCK_TIERS)


def unlocked_level_for(total_referrals: int) -> int:
    """
    Get unlocked level for a direct referral count.

    Args:
        total_referrals: Direct referral count

    Returns:
        Deepest level that receives available CP

    Raises:
        ValueError: Negative count
    """
    if total_referrals < 0:
        raise ValueError(f"Referral count cannot be negative: {total_referrals}")
    return UNLOCK_TIERS[min(total_referrals, _MAX_TIER_COUNT)]


def referrals_needed_for_next_tier(total_referrals: int) -> int | None:
    """
    Get how many more direct referrals raise the unlocked level.

    Returns:
        Missing referrals, or None when the top tier is reached
    """
    if total_referrals >= _MAX_TIER_COUNT:
        return None
    current = unlocked_level_for(total_referrals)
    for count in sorted(UNLOCK_TIERS):
        if count > total_referrals and UNLOCK_TIERS[count] > current:
            return count - total_referrals
    return None


@dataclass(frozen=True)
class UnlockResult:
    """Outcome of an unlock that raised the level."""

    member_id: int
    previous_unlocked_level: int
    new_unlocked_level: int
    previous_referrals: int
    new_referrals: int
    released_cp_amount: Decimal
    released_transactions: int
    history: CpUnlockHistory


class UnlockGate(BaseService):
    """Owner of wallet.unlocked_level, referral counters and unlock history."""

    def __init__(
        self,
        session: AsyncSession,
        notification_service: NotificationService | None = None,
    ) -> None:
        """Initialize unlock gate."""
        super().__init__(session)
        self.wallet_repo = MemberWalletRepository(session)
        self.member_cp_repo = MemberCommunityPointRepository(session)
        self.cp_tx_repo = CpTransactionRepository(session)
        self.history_repo = CpUnlockHistoryRepository(session)
        self.wallet_service = WalletService(session)
        self.notification_service = notification_service or NotificationService(
            session
        )

    async def record_new_referral(self, member_id: int) -> UnlockResult | None:
        """
        Count one more direct referral and unlock levels if it earns a tier.

        Args:
            member_id: Sponsor member ID

        Returns:
            Unlock result, or None if the level did not change
        """
        wallet = await self.wallet_service.lock_wallet(member_id)
        previous_referrals = wallet.total_referrals

        await self.wallet_repo.apply_deltas(member_id, total_referrals=1)

        return await self.on_referral_count_changed(
            member_id, previous_referrals=previous_referrals
        )

    async def on_referral_count_changed(
        self, member_id: int, previous_referrals: int | None = None
    ) -> UnlockResult | None:
        """
        Raise the unlocked level to match the referral count.

        When the level rises: on-hold CP of the newly unlocked levels moves
        to available (per level and in the wallet), the matching ledger rows
        become released, one history row is written and the member is
        notified. Otherwise nothing is written.

        Args:
            member_id: Member ID
            previous_referrals: Referral count read under lock before the
                change; defaults to the count of the previous unlock

        Returns:
            Unlock result, or None for a no-op

        Raises:
            MissingWalletError: Member has no wallet
        """
        wallet = await self.wallet_service.lock_wallet(member_id)
        current_level = wallet.unlocked_level
        new_referrals = wallet.total_referrals
        new_level = unlocked_level_for(new_referrals)

        if new_level <= current_level:
            self.logger.debug(
                "Unlock level unchanged",
                extra={
                    "member_id": member_id,
                    "total_referrals": new_referrals,
                    "unlocked_level": current_level,
                },
            )
            return None

        if previous_referrals is None:
            previous_referrals = await self._last_unlock_referrals(member_id)

        level_from = current_level + 1
        rows = await self.member_cp_repo.lock_level_range(
            member_id, level_from, new_level
        )
        released = Decimal("0.00")
        for row in rows:
            onhold = quantize_points(row.onhold_cp)
            await self.member_cp_repo.release_row(row.id, onhold)
            released += onhold

        await self.wallet_repo.raise_unlocked_level(member_id, new_level)
        await self.wallet_service.release_onhold_points(member_id, released)

        released_count, ledger_amount = await self.cp_tx_repo.release_onhold_range(
            member_id, level_from, new_level, datetime.now(UTC)
        )
        if ledger_amount != released:
            self.logger.warning(
                "Released ledger CP differs from level balances",
                extra={
                    "member_id": member_id,
                    "ledger_amount": str(ledger_amount),
                    "balance_amount": str(released),
                },
            )

        history = await self.history_repo.create(
            member_id=member_id,
            previous_referrals=previous_referrals,
            new_referrals=new_referrals,
            previous_unlocked_level=current_level,
            new_unlocked_level=new_level,
            released_cp_amount=released,
        )

        self.logger.info(
            f"Levels {level_from}-{new_level} unlocked for member {member_id}",
            extra={
                "member_id": member_id,
                "previous_unlocked_level": current_level,
                "new_unlocked_level": new_level,
                "released_cp_amount": str(released),
                "released_transactions": released_count,
            },
        )

        await self.notification_service.notify_levels_unlocked(
            member_id, current_level, new_level, released, new_referrals
        )

        return UnlockResult(
            member_id=member_id,
            previous_unlocked_level=current_level,
            new_unlocked_level=new_level,
            previous_referrals=previous_referrals,
            new_referrals=new_referrals,
            released_cp_amount=released,
            released_transactions=released_count,
            history=history,
        )

    async def _last_unlock_referrals(self, member_id: int) -> int:
        """Referral count recorded by the latest unlock, 0 if none."""
        history = await self.history_repo.get_member_history(member_id)
        if history:
            return history[0].new_referrals
        return 0
