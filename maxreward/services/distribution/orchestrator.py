"""
Community point distribution orchestrator.

Walks the upline of a source member and credits each ancestor its level
share of a CP pool, honouring the ancestor's unlock gate.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.settings import settings
from maxreward.models.enums import DistributionReason
from maxreward.repositories.cp_distribution_pool_repository import (
    CpDistributionPoolRepository,
)
from maxreward.repositories.cp_level_config_repository import (
    CpLevelConfigRepository,
)
from maxreward.repositories.member_wallet_repository import (
    MemberWalletRepository,
)
from maxreward.services.base_service import BaseService
from maxreward.services.ledger.community_point_ledger import (
    CommunityPointLedger,
)
from maxreward.services.level_config_service import percentage_for_level
from maxreward.services.notification_service import NotificationService
from maxreward.services.referral.graph import ReferralGraph
from maxreward.services.wallet_service import WalletService
from maxreward.utils.exceptions import MissingWalletError
from maxreward.utils.money import percent_of, quantize_points


@dataclass(frozen=True)
class LevelCredit:
    """CP credited to one ancestor."""

    member_id: int
    level: int
    percentage: Decimal
    amount: Decimal
    is_locked: bool
    cp_transaction_id: int


@dataclass
class DistributionResult:
    """Outcome of one distribution event."""

    pool_id: int
    transaction_ref: str
    reason: DistributionReason
    total_pool: Decimal
    credits: list[LevelCredit] = field(default_factory=list)
    missing_wallet_member_ids: list[int] = field(default_factory=list)

    @property
    def total_distributed(self) -> Decimal:
        """CP credited across all levels."""
        return quantize_points(
            sum((credit.amount for credit in self.credits), Decimal("0"))
        )

    @property
    def total_onhold(self) -> Decimal:
        """CP credited to locked levels."""
        return quantize_points(
            sum(
                (credit.amount for credit in self.credits if credit.is_locked),
                Decimal("0"),
            )
        )

    @property
    def undistributed(self) -> Decimal:
        """Pool remainder no ancestor received."""
        return self.total_pool - self.total_distributed


def _credit_reason(reason: DistributionReason, level: int) -> str:
    """Point transaction reason for a CP credit."""
    match reason:
        case DistributionReason.REGISTRATION:
            return f"Community Points from level {level} member registration"
        case DistributionReason.PURCHASE:
            return f"Community Points from level {level} purchase"


class CommunityPointDistributor(BaseService):
    """
    Distribution orchestrator.

    Runs inside the caller's transaction and never commits; the caller
    commits or rolls back the whole triggering event.
    """

    def __init__(
        self,
        session: AsyncSession,
        notification_service: NotificationService | None = None,
    ) -> None:
        """Initialize distributor with its collaborators."""
        super().__init__(session)
        self.graph = ReferralGraph(session)
        self.ledger = CommunityPointLedger(session)
        self.wallet_service = WalletService(session)
        self.wallet_repo = MemberWalletRepository(session)
        self.config_repo = CpLevelConfigRepository(session)
        self.pool_repo = CpDistributionPoolRepository(session)
        self.notification_service = notification_service or NotificationService(
            session
        )

    async def distribute(
        self,
        source_member_id: int,
        trigger_member_id: int,
        total_pool: Decimal,
        reason: DistributionReason,
        purchase_id: int | None = None,
        total_transaction_amount: Decimal | None = None,
    ) -> DistributionResult:
        """
        Distribute a CP pool up the source member's referral chain.

        Per ancestor: the trigger member is skipped, the share is
        pool x level percentage / 100 rounded to 2 places, zero shares are
        skipped, a missing wallet is logged and skipped. Levels above the
        ancestor's unlocked level are credited on hold.

        Args:
            source_member_id: Member whose upline receives CP
            trigger_member_id: Member that caused the event
            total_pool: CP amount to distribute
            reason: Event kind
            purchase_id: Purchase for purchase events
            total_transaction_amount: Whole event amount for the audit row

        Returns:
            Distribution result

        Raises:
            GraphIntegrityError: Referral cycle on the path
        """
        total_pool = quantize_points(total_pool)
        configs = await self.config_repo.get_ordered()

        source_wallet = await self.wallet_repo.get_by_member(source_member_id)
        pool = await self.pool_repo.create(
            transaction_ref=f"CP-{uuid.uuid4().hex[:16].upper()}",
            reason=reason,
            source_member_id=source_member_id,
            trigger_member_id=trigger_member_id,
            purchase_id=purchase_id,
            total_cp_amount=total_pool,
            total_cp_distributed=Decimal("0.00"),
            total_transaction_amount=quantize_points(
                total_transaction_amount
                if total_transaction_amount is not None
                else total_pool
            ),
            total_referrals=source_wallet.total_referrals if source_wallet else 0,
            unlocked_level=(
                source_wallet.unlocked_level
                if source_wallet
                else settings.default_unlocked_level
            ),
        )
        result = DistributionResult(
            pool_id=pool.id,
            transaction_ref=pool.transaction_ref,
            reason=reason,
            total_pool=total_pool,
        )

        path = await self.graph.get_upline_path(
            source_member_id, settings.cp_max_levels
        )

        for entry in path:
            receiver_id, level = entry.member_id, entry.level
            if receiver_id == trigger_member_id:
                continue

            percentage = percentage_for_level(configs, level)
            amount = percent_of(total_pool, percentage)
            if amount <= 0:
                continue

            wallet = await self.wallet_repo.lock_by_member(receiver_id)
            if wallet is None:
                self.logger.bind(
                    member_id=receiver_id, level=level, pool_id=pool.id
                ).warning(
                    "Skipping level {}: {}", level, MissingWalletError(receiver_id)
                )
                result.missing_wallet_member_ids.append(receiver_id)
                continue

            is_locked = wallet.is_level_locked(level)
            cp_transaction = await self.ledger.record_distribution(
                source_member_id=source_member_id,
                receiver_member_id=receiver_id,
                level=level,
                percentage=percentage,
                amount=amount,
                is_locked=is_locked,
                purchase_id=purchase_id,
                pool_id=pool.id,
                total_referrals=wallet.total_referrals,
            )
            await self.wallet_service.credit_community_points(
                receiver_id,
                amount,
                is_locked,
                _credit_reason(reason, level),
                referral_member_id=trigger_member_id,
            )
            await self.notification_service.notify_community_points(
                receiver_id, amount, level, is_locked, source_member_id
            )

            result.credits.append(
                LevelCredit(
                    member_id=receiver_id,
                    level=level,
                    percentage=percentage,
                    amount=amount,
                    is_locked=is_locked,
                    cp_transaction_id=cp_transaction.id,
                )
            )

        await self.pool_repo.set_distributed(pool.id, result.total_distributed)

        self.logger.info(
            "CP distribution completed",
            extra={
                "pool_id": pool.id,
                "reason": str(reason),
                "source_member_id": source_member_id,
                "total_pool": str(total_pool),
                "total_distributed": str(result.total_distributed),
                "total_onhold": str(result.total_onhold),
                "levels_credited": len(result.credits),
                "missing_wallets": len(result.missing_wallet_member_ids),
            },
        )
        return result
