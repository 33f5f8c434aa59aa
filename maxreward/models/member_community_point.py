"""
MemberCommunityPoint model.

Per member, per level community point balances.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.models.base import Base
from maxreward.models.types import MoneyType


class MemberCommunityPoint(Base):
    """
    MemberCommunityPoint entity.

    Created lazily on the first distribution to a (member, level) pair.
    total_cp always equals available_cp + onhold_cp.
    """

    __tablename__ = "member_community_points"
    __table_args__ = (
        UniqueConstraint("member_id", "level", name="uq_member_cp_level"),
        CheckConstraint(
            "level >= 1 AND level <= 30", name="check_member_cp_level_range"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)

    total_cp: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    available_cp: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    onhold_cp: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    is_locked: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

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

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<MemberCommunityPoint(member_id={self.member_id}, "
            f"level={self.level}, total={self.total_cp}, "
            f"available={self.available_cp}, onhold={self.onhold_cp})>"
        )
