"""
Wallet service.

Applies point credits and debits to member wallets and the company
reserve, writing a PointTransaction with balance snapshots for each.
Callers own the database transaction.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.enums import PointDirection, PointType
from maxreward.models.member_wallet import MemberWallet
from maxreward.models.point_transaction import PointTransaction
from maxreward.repositories.company_reserve_repository import (
    CompanyReserveRepository,
)
from maxreward.repositories.member_wallet_repository import (
    MemberWalletRepository,
)
from maxreward.repositories.point_transaction_repository import (
    PointTransactionRepository,
)
from maxreward.services.base_service import BaseService
from maxreward.utils.exceptions import (
    InsufficientReferralPointsError,
    MissingWalletError,
)
from maxreward.utils.money import quantize_points


ONHOLD_MARKER = "[ON HOLD]"


class WalletService(BaseService):
    """Wallet balance mutations with transaction log."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet service."""
        super().__init__(session)
        self.wallet_repo = MemberWalletRepository(session)
        self.reserve_repo = CompanyReserveRepository(session)
        self.point_tx_repo = PointTransactionRepository(session)

    async def lock_wallet(self, member_id: int) -> MemberWallet:
        """
        Lock and load a member wallet.

        Raises:
            MissingWalletError: Member has no wallet
        """
        wallet = await self.wallet_repo.lock_by_member(member_id)
        if wallet is None:
            raise MissingWalletError(member_id)
        return wallet

    async def _apply(
        self,
        member_id: int,
        kind: PointType,
        direction: PointDirection,
        amount: Decimal,
        reason: str,
        referral_member_id: int | None,
        **deltas: Decimal,
    ) -> PointTransaction:
        """Apply atomic deltas, reload the wallet and log the movement."""
        if not await self.wallet_repo.apply_deltas(member_id, **deltas):
            raise MissingWalletError(member_id)

        wallet = await self.lock_wallet(member_id)
        return await self.point_tx_repo.create(
            member_id=member_id,
            referral_member_id=referral_member_id,
            transaction_points=amount,
            transaction_type=kind,
            points_type=direction,
            transaction_reason=reason,
            bap=wallet.available_points,
            brp=wallet.total_rp,
            bop=wallet.onhold_points,
        )

    async def credit_personal_points(
        self, member_id: int, amount: Decimal, reason: str
    ) -> PointTransaction:
        """
        Credit PP to a member.

        Args:
            member_id: Member ID
            amount: PP amount
            reason: Transaction reason

        Returns:
            Logged transaction
        """
        amount = quantize_points(amount)
        return await self._apply(
            member_id,
            PointType.PP,
            PointDirection.CREDITED,
            amount,
            reason,
            None,
            total_pp=amount,
            available_points=amount,
            total_points=amount,
        )

    async def credit_referral_points(
        self,
        member_id: int,
        amount: Decimal,
        reason: str,
        referral_member_id: int | None = None,
    ) -> PointTransaction:
        """
        Credit RP to a member.

        Args:
            member_id: Member ID
            amount: RP amount
            reason: Transaction reason
            referral_member_id: Member whose activity produced the RP

        Returns:
            Logged transaction
        """
        amount = quantize_points(amount)
        return await self._apply(
            member_id,
            PointType.RP,
            PointDirection.CREDITED,
            amount,
            reason,
            referral_member_id,
            total_rp=amount,
            available_points=amount,
            total_points=amount,
        )

    async def debit_referral_points(
        self,
        member_id: int,
        amount: Decimal,
        reason: str,
        referral_member_id: int | None = None,
    ) -> PointTransaction:
        """
        Debit RP from a member after checking the locked balance.

        Only total_rp is reduced; RP spent on an invitation never sat in
        the CP buckets.

        Raises:
            InsufficientReferralPointsError: Balance below amount
        """
        amount = quantize_points(amount)
        wallet = await self.lock_wallet(member_id)
        if wallet.total_rp < amount:
            raise InsufficientReferralPointsError(
                member_id, wallet.total_rp, amount
            )

        return await self._apply(
            member_id,
            PointType.RP,
            PointDirection.DEBITED,
            amount,
            reason,
            referral_member_id,
            total_rp=-amount,
        )

    async def credit_community_points(
        self,
        member_id: int,
        amount: Decimal,
        is_locked: bool,
        reason: str,
        referral_member_id: int | None = None,
    ) -> PointTransaction:
        """
        Credit CP to a member wallet.

        Locked CP goes to onhold_points, unlocked CP to available_points.

        Returns:
            Logged transaction
        """
        amount = quantize_points(amount)
        bucket = "onhold_points" if is_locked else "available_points"
        if is_locked:
            reason = f"{reason} {ONHOLD_MARKER}"

        return await self._apply(
            member_id,
            PointType.CP,
            PointDirection.CREDITED,
            amount,
            reason,
            referral_member_id,
            total_cp=amount,
            total_points=amount,
            **{bucket: amount},
        )

    async def release_onhold_points(self, member_id: int, amount: Decimal) -> None:
        """
        Move CP from on-hold to available.

        Args:
            member_id: Member ID
            amount: Released CP
        """
        if amount <= 0:
            return
        amount = quantize_points(amount)
        if not await self.wallet_repo.apply_deltas(
            member_id, onhold_points=-amount, available_points=amount
        ):
            raise MissingWalletError(member_id)

    async def credit_company_reserve(
        self, amount: Decimal, reason: str
    ) -> PointTransaction:
        """
        Credit CR points to the company reserve.

        Args:
            amount: CR amount
            reason: Transaction reason

        Returns:
            Logged transaction (member_id is None)
        """
        amount = quantize_points(amount)
        balance = await self.reserve_repo.add_points(amount)

        self.logger.debug(
            "Company reserve credited",
            extra={"amount": str(amount), "balance": str(balance)},
        )
        return await self.point_tx_repo.create(
            member_id=None,
            transaction_points=amount,
            transaction_type=PointType.CR,
            points_type=PointDirection.CREDITED,
            transaction_reason=reason,
            cr_balance=balance,
        )
