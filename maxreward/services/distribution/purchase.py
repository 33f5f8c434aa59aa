"""
Purchase reward service.

Distributes the reward pool of an approved purchase.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.settings import settings
from maxreward.models.enums import DistributionReason
from maxreward.repositories.cp_distribution_pool_repository import (
    CpDistributionPoolRepository,
)
from maxreward.services.base_service import BaseService, log_operation
from maxreward.services.distribution.orchestrator import (
    CommunityPointDistributor,
    DistributionResult,
)
from maxreward.services.distribution.pool_split import PoolSplit, purchase_split
from maxreward.services.notification_service import NotificationService
from maxreward.services.referral.graph import ReferralGraph
from maxreward.services.wallet_service import WalletService
from maxreward.utils.db_decorators import retry_on_conflict
from maxreward.utils.exceptions import PurchaseAlreadyRewardedError


@dataclass
class PurchaseRewardResult:
    """Outcome of a purchase reward."""

    purchase_id: int
    member_id: int
    split: PoolSplit
    rp_receiver_id: int | None
    distribution: DistributionResult


class PurchaseRewardService(BaseService):
    """Purchase reward distribution."""

    def __init__(
        self,
        session: AsyncSession,
        notification_service: NotificationService | None = None,
    ) -> None:
        """Initialize purchase reward service."""
        super().__init__(session)
        self.graph = ReferralGraph(session)
        self.wallet_service = WalletService(session)
        self.pool_repo = CpDistributionPoolRepository(session)
        self.notification_service = notification_service or NotificationService(
            session
        )
        self.distributor = CommunityPointDistributor(
            session, self.notification_service
        )

    @retry_on_conflict(max_attempts=settings.distribution_max_retries)
    @log_operation
    async def reward_purchase(
        self,
        member_id: int,
        purchase_id: int,
        purchase_points: Decimal,
    ) -> PurchaseRewardResult:
        """
        Reward an approved purchase in one transaction.

        PP goes to the buyer, RP to the buyer's sponsor, CR to the company
        reserve and CP up the buyer's chain. Shares come from settings.

        Args:
            member_id: Buyer member ID
            purchase_id: Purchase ID (rewarded at most once)
            purchase_points: Reward pool of the purchase

        Returns:
            Purchase reward result

        Raises:
            PurchaseAlreadyRewardedError: Purchase already distributed
            MissingWalletError: Buyer has no wallet
            ConcurrencyConflictError: Lock conflicts exhausted retries
        """
        if await self.pool_repo.exists(
            purchase_id=purchase_id, reason=DistributionReason.PURCHASE
        ):
            raise PurchaseAlreadyRewardedError(purchase_id)

        split = purchase_split(purchase_points)
        await self.wallet_service.lock_wallet(member_id)

        await self.wallet_service.credit_personal_points(
            member_id, split.pp, f"Personal Points from purchase #{purchase_id}"
        )
        await self.notification_service.notify_personal_points(member_id, split.pp)

        rp_receiver_id = await self.graph.get_sponsor_id(member_id)
        if rp_receiver_id is not None:
            await self.wallet_service.credit_referral_points(
                rp_receiver_id,
                split.rp,
                f"Referral Points from purchase #{purchase_id}",
                referral_member_id=member_id,
            )
            await self.notification_service.notify_referral_points(
                rp_receiver_id, split.rp, member_id
            )

        distribution = await self.distributor.distribute(
            source_member_id=member_id,
            trigger_member_id=member_id,
            total_pool=split.cp,
            reason=DistributionReason.PURCHASE,
            purchase_id=purchase_id,
            total_transaction_amount=split.total,
        )

        await self.wallet_service.credit_company_reserve(
            split.cr, f"Company Reserve from purchase #{purchase_id}"
        )

        await self.commit()

        return PurchaseRewardResult(
            purchase_id=purchase_id,
            member_id=member_id,
            split=split,
            rp_receiver_id=rp_receiver_id,
            distribution=distribution,
        )
