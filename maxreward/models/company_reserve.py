"""
CompanyReserve model.

Single-row accumulator for the company reserve share.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.models.base import Base
from maxreward.models.types import MoneyType


# The reserve always lives at this primary key
COMPANY_RESERVE_ID = 1


class CompanyReserve(Base):
    """Company reserve singleton, addressed by COMPANY_RESERVE_ID."""

    __tablename__ = "company_reserve"
    __table_args__ = (
        CheckConstraint(
            f"id = {COMPANY_RESERVE_ID}", name="check_company_reserve_singleton"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False
    )

    cr_points: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<CompanyReserve(cr_points={self.cr_points})>"
