"""
CP level configuration model.

Maps level ranges of the referral tree to a per-level percentage.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.models.base import Base
from maxreward.models.types import PercentType


class CpLevelConfig(Base):
    """One level range of the CP distribution table."""

    __tablename__ = "cp_level_configs"
    __table_args__ = (
        CheckConstraint(
            "level_to >= level_from", name="check_cp_level_range_order"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    level_from: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    level_to: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    cp_percentage_per_level: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )
    total_percentage_for_range: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
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

    @property
    def level_count(self) -> int:
        """Number of levels in the range."""
        return self.level_to - self.level_from + 1

    def covers(self, level: int) -> bool:
        """Whether the level falls inside this range."""
        return self.level_from <= level <= self.level_to

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CpLevelConfig(levels={self.level_from}-{self.level_to}, "
            f"per_level={self.cp_percentage_per_level}, "
            f"total={self.total_percentage_for_range})>"
        )
