"""
MemberWallet model.

Aggregate point balances and unlock state of a member.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.config.constants import DEFAULT_UNLOCKED_LEVEL
from maxreward.models.base import Base
from maxreward.models.types import MoneyType


class MemberWallet(Base):
    """
    MemberWallet entity.

    Attributes:
        id: Primary key
        member_id: Owner, one wallet per member
        total_referrals: Direct referrals made by the member
        unlocked_level: Highest level credited as available (only grows)
        onhold_points: CP waiting for a level unlock
        available_points: Spendable points
        total_points: Everything ever credited (PP + RP + CP)
        total_rp: Referral point balance used to invite members
        total_pp: Personal points received
        total_cp: Community points received
    """

    __tablename__ = "member_wallets"
    __table_args__ = (
        CheckConstraint(
            "unlocked_level >= 1 AND unlocked_level <= 30",
            name="check_wallet_unlocked_level_range",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # Unlock gate state
    total_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    unlocked_level: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_UNLOCKED_LEVEL, nullable=False
    )

    # Balances
    onhold_points: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    available_points: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_points: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_rp: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_pp: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_cp: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def is_level_locked(self, level: int) -> bool:
        """Whether CP for this level is held back."""
        return level > self.unlocked_level

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<MemberWallet(member_id={self.member_id}, "
            f"unlocked_level={self.unlocked_level}, "
            f"available={self.available_points}, onhold={self.onhold_points})>"
        )
