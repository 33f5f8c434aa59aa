"""
CpUnlockHistory model.

Append-only audit of unlock events.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.models.base import Base
from maxreward.models.types import MoneyType


class CpUnlockHistory(Base):
    """One row per raise of a member's unlocked level."""

    __tablename__ = "cp_unlock_histories"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    previous_referrals: Mapped[int] = mapped_column(Integer, nullable=False)
    new_referrals: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_unlocked_level: Mapped[int] = mapped_column(
        Integer, nullable=False
    )
    new_unlocked_level: Mapped[int] = mapped_column(Integer, nullable=False)
    released_cp_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # No updated_at: rows are never modified
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CpUnlockHistory(member_id={self.member_id}, "
            f"levels={self.previous_unlocked_level}->{self.new_unlocked_level}, "
            f"released={self.released_cp_amount})>"
        )
