"""
PointTransaction model.

General wallet log across all point kinds (PP, RP, CP, CR).
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.models.base import Base
from maxreward.models.types import MoneyType


class PointTransaction(Base):
    """
    PointTransaction entity.

    Company reserve credits have no member. Balance snapshots are taken
    after the movement is applied.

    Attributes:
        member_id: Wallet owner, None for company reserve rows
        referral_member_id: Member whose event caused the movement
        transaction_points: Points moved
        transaction_type: pp / rp / cp / cr
        points_type: credited / debited
        transaction_reason: Human readable reason
        bap: Available points balance after the movement
        brp: RP balance after the movement
        bop: On-hold balance after the movement
        cr_balance: Company reserve balance after a CR movement
    """

    __tablename__ = "point_transactions"
    __table_args__ = (
        Index("idx_point_transactions_member_type", "member_id", "transaction_type"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    member_id: Mapped[int | None] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    referral_member_id: Mapped[int | None] = mapped_column(
        ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True,
    )

    transaction_points: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)
    points_type: Mapped[str] = mapped_column(String(10), nullable=False)
    transaction_reason: Mapped[str] = mapped_column(
        String(255), nullable=False
    )

    # Balance snapshots
    bap: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    brp: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    bop: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    cr_balance: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PointTransaction(member_id={self.member_id}, "
            f"type={self.transaction_type}, {self.points_type} "
            f"{self.transaction_points})>"
        )
