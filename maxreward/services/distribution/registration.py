"""
Registration reward service.

Registers a member invited by a referrer and distributes the
registration pool the referrer pays for the invitation.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.settings import settings
from maxreward.models.enums import DistributionReason, MemberStatus
from maxreward.models.member import Member
from maxreward.repositories.member_repository import MemberRepository
from maxreward.repositories.member_wallet_repository import (
    MemberWalletRepository,
)
from maxreward.services.base_service import BaseService, log_operation
from maxreward.services.distribution.orchestrator import (
    CommunityPointDistributor,
    DistributionResult,
)
from maxreward.services.distribution.pool_split import (
    PoolSplit,
    registration_split,
)
from maxreward.services.notification_service import NotificationService
from maxreward.services.referral.graph import ReferralGraph
from maxreward.services.unlock.gate import UnlockGate, UnlockResult
from maxreward.services.wallet_service import WalletService
from maxreward.utils.db_decorators import retry_on_conflict
from maxreward.utils.exceptions import (
    DuplicateMemberError,
    InsufficientReferralPointsError,
)


@dataclass
class RegistrationResult:
    """Outcome of a member registration."""

    member: Member
    split: PoolSplit
    rp_receiver_id: int | None
    distribution: DistributionResult
    unlock: UnlockResult | None


class RegistrationRewardService(BaseService):
    """Member registration with referral point distribution."""

    def __init__(
        self,
        session: AsyncSession,
        notification_service: NotificationService | None = None,
    ) -> None:
        """Initialize registration service."""
        super().__init__(session)
        self.member_repo = MemberRepository(session)
        self.wallet_repo = MemberWalletRepository(session)
        self.graph = ReferralGraph(session)
        self.wallet_service = WalletService(session)
        self.notification_service = notification_service or NotificationService(
            session
        )
        self.distributor = CommunityPointDistributor(
            session, self.notification_service
        )
        self.unlock_gate = UnlockGate(session, self.notification_service)

    @retry_on_conflict(max_attempts=settings.distribution_max_retries)
    @log_operation
    async def register_member(
        self,
        referrer_id: int,
        name: str,
        phone: str,
        email: str | None = None,
    ) -> RegistrationResult:
        """
        Register a referred member in one transaction.

        Steps: check the referrer's RP, create member and wallet, debit
        the registration pool from the referrer, link the referral,
        distribute PP/RP/CP/CR, count the referral (which may unlock
        levels) and notify the referrer. Any failure rolls everything back.

        Args:
            referrer_id: Inviting member ID
            name: New member name
            phone: New member phone (unique)
            email: New member email (unique, optional)

        Returns:
            Registration result

        Raises:
            InsufficientReferralPointsError: Referrer RP below the pool
            DuplicateMemberError: Phone or email already registered
            MissingWalletError: Referrer has no wallet
            ConcurrencyConflictError: Lock conflicts exhausted retries
        """
        split = registration_split()

        referrer_wallet = await self.wallet_service.lock_wallet(referrer_id)
        if referrer_wallet.total_rp < split.total:
            raise InsufficientReferralPointsError(
                referrer_id, referrer_wallet.total_rp, split.total
            )

        if await self.member_repo.phone_exists(phone):
            raise DuplicateMemberError("phone", phone)
        if email is not None and await self.member_repo.exists(email=email):
            raise DuplicateMemberError("email", email)

        member = await self.member_repo.create(
            name=name,
            phone=phone,
            email=email,
            status=MemberStatus.ACTIVE,
        )
        await self.wallet_repo.create(
            member_id=member.id,
            unlocked_level=settings.default_unlocked_level,
        )

        await self.wallet_service.debit_referral_points(
            referrer_id,
            split.total,
            f"Referred new member: {name}",
            referral_member_id=member.id,
        )
        await self.graph.add_edge(referrer_id, member.id)

        # PP to the new member
        await self.wallet_service.credit_personal_points(
            member.id, split.pp, "Personal Points from registration"
        )
        await self.notification_service.notify_personal_points(member.id, split.pp)

        # RP to the referrer's sponsor
        rp_receiver_id = await self.graph.get_sponsor_id(referrer_id)
        if rp_receiver_id is not None:
            await self.wallet_service.credit_referral_points(
                rp_receiver_id,
                split.rp,
                f"Referral Points from {name}'s registration",
                referral_member_id=member.id,
            )
            await self.notification_service.notify_referral_points(
                rp_receiver_id, split.rp, member.id
            )
        else:
            self.logger.info(
                "Referrer has no sponsor, RP share not credited",
                extra={"referrer_id": referrer_id, "rp": str(split.rp)},
            )

        # CP up the referrer's chain
        distribution = await self.distributor.distribute(
            source_member_id=referrer_id,
            trigger_member_id=member.id,
            total_pool=split.cp,
            reason=DistributionReason.REGISTRATION,
            total_transaction_amount=split.total,
        )

        # CR to the company reserve
        await self.wallet_service.credit_company_reserve(
            split.cr, f"Company Reserve from {name}'s registration"
        )

        unlock = await self.unlock_gate.record_new_referral(referrer_id)

        await self.notification_service.notify_referral_invite(
            referrer_id, member.id, name
        )

        await self.commit()

        self.logger.info(
            f"Member {member.id} registered by {referrer_id}",
            extra={
                "member_id": member.id,
                "referrer_id": referrer_id,
                "pool_id": distribution.pool_id,
                "cp_distributed": str(distribution.total_distributed),
                "unlocked": unlock is not None,
            },
        )

        return RegistrationResult(
            member=member,
            split=split,
            rp_receiver_id=rp_receiver_id,
            distribution=distribution,
            unlock=unlock,
        )
