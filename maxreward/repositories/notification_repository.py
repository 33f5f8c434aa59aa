"""
Notification repository.

Data access layer for Notification model.
"""

from datetime import UTC, datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.enums import NotificationStatus
from maxreward.models.notification import Notification
from maxreward.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Notification repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize notification repository."""
        super().__init__(Notification, session)

    async def get_member_notifications(
        self, member_id: int, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        """Get latest notifications of a member."""
        stmt = select(Notification).where(Notification.member_id == member_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.id.desc()).limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_unread(self, member_id: int) -> int:
        """Count unread notifications of a member."""
        stmt = select(func.count(Notification.id)).where(
            Notification.member_id == member_id,
            Notification.is_read.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def mark_all_read(self, member_id: int) -> int:
        """
        Mark all notifications of a member as read.

        Returns:
            Number of updated notifications
        """
        stmt = (
            update(Notification)
            .where(
                Notification.member_id == member_id,
                Notification.is_read.is_(False),
            )
            .values(
                is_read=True,
                status=NotificationStatus.READ,
                read_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
