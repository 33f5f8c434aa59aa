"""
Referral model.

Represents the sponsor -> member edge of the referral tree.
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from maxreward.models.base import Base


class Referral(Base):
    """
    Referral edge.

    Each member has exactly one sponsor, so child_member_id is unique.
    Edges are created once at registration and never changed.
    """

    __tablename__ = "referrals"
    __table_args__ = (
        CheckConstraint(
            "parent_member_id <> child_member_id",
            name="check_referral_not_self",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Sponsor (who invited)
    parent_member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Invited member
    child_member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, parent_member_id={self.parent_member_id}, "
            f"child_member_id={self.child_member_id})>"
        )
