"""
CpTransaction model.

Append-only ledger of community point movements.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.models.base import Base
from maxreward.models.enums import CpTransactionStatus, CpTransactionType
from maxreward.models.types import MoneyType, PercentType


class CpTransaction(Base):
    """
    CpTransaction entity.

    One row per (distribution event, level, receiver). Amounts are never
    changed after creation; the only state change is onhold -> released.

    Attributes:
        id: Primary key
        cp_distribution_pool_id: Distribution event the row belongs to
        purchase_id: Purchase that triggered the distribution, if any
        source_member_id: Member whose upline was walked
        receiver_member_id: Member credited
        level: Distance from the source (1 = direct sponsor)
        cp_percentage: Level percentage applied to the CP pool
        cp_amount: Points credited
        is_locked: Level was above the receiver's unlocked level
        total_referrals: Receiver's direct referrals at distribution time
        status: available / onhold / released
        transaction_type: earned / unlocked
        locked_at: When the row went on hold
        released_at: When an unlock released the row
    """

    __tablename__ = "cp_transactions"
    __table_args__ = (
        Index(
            "idx_cp_transactions_receiver_status_level",
            "receiver_member_id",
            "status",
            "level",
        ),
        Index("idx_cp_transactions_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    cp_distribution_pool_id: Mapped[int | None] = mapped_column(
        ForeignKey("cp_distribution_pools.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    purchase_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )

    source_member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    receiver_member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
    )

    level: Mapped[int] = mapped_column(Integer, nullable=False)
    cp_percentage: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    cp_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    is_locked: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    total_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CpTransactionStatus.AVAILABLE.value,
    )
    transaction_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CpTransactionType.EARNED.value,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    locked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    released_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CpTransaction(id={self.id}, receiver={self.receiver_member_id}, "
            f"level={self.level}, amount={self.cp_amount}, "
            f"status={self.status})>"
        )
