"""
CpDistributionPool model.

Summary of one community point distribution event.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.models.base import Base
from maxreward.models.types import MoneyType


class CpDistributionPool(Base):
    """
    CpDistributionPool entity.

    Attributes:
        id: Primary key
        transaction_ref: Business reference of the triggering event
        reason: registration / purchase
        source_member_id: Member whose upline was walked
        trigger_member_id: Subject of the event
        purchase_id: Purchase, if any
        total_cp_amount: CP pool handed to the orchestrator
        total_cp_distributed: Sum of ledger rows actually written
        total_transaction_amount: Whole pool of the event (all shares)
        total_referrals: Source's direct referrals at distribution time
        unlocked_level: Source's unlocked level at distribution time
    """

    __tablename__ = "cp_distribution_pools"
    __table_args__ = (
        UniqueConstraint("reason", "purchase_id", name="uq_cp_pool_purchase"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    transaction_ref: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )
    reason: Mapped[str] = mapped_column(String(20), nullable=False)

    source_member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    trigger_member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )
    purchase_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    total_cp_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    total_cp_distributed: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_transaction_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )

    total_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    unlocked_level: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def undistributed_cp(self) -> Decimal:
        """CP of the pool that no upline level received."""
        return self.total_cp_amount - self.total_cp_distributed

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CpDistributionPool(id={self.id}, ref={self.transaction_ref}, "
            f"distributed={self.total_cp_distributed}/{self.total_cp_amount})>"
        )
