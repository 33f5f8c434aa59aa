"""
Notification service.

Stores member notifications and forwards them to an optional external
dispatcher (email, WhatsApp). Delivery is fire-and-forget: a failure is
logged and never propagates into the business transaction.
"""

from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.enums import NotificationStatus, NotificationType
from maxreward.models.notification import Notification
from maxreward.repositories.notification_repository import (
    NotificationRepository,
)
from maxreward.utils.money import format_points


NotificationDispatcher = Callable[[Notification], Awaitable[None]]


def _json_safe(data: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert Decimals to strings so data fits a JSON column."""
    if data is None:
        return None
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in data.items()
    }


class NotificationService:
    """Member notification sink."""

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
    ) -> None:
        """
        Initialize notification service.

        Args:
            session: Async database session
            dispatcher: Optional coroutine delivering a stored notification
        """
        self.session = session
        self.notification_repo = NotificationRepository(session)
        self.dispatcher = dispatcher

    async def notify(
        self,
        member_id: int,
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Notification | None:
        """
        Store a notification inside a SAVEPOINT and dispatch it.

        Args:
            member_id: Receiver member ID
            type: Notification type
            title: Short title
            message: Message text
            data: Extra payload

        Returns:
            Stored notification, or None if storing failed
        """
        try:
            async with self.session.begin_nested():
                notification = await self.notification_repo.create(
                    member_id=member_id,
                    type=type,
                    title=title,
                    message=message,
                    data=_json_safe(data),
                    status=NotificationStatus.UNREAD,
                    is_read=False,
                )
        except Exception as e:
            logger.bind(member_id=member_id, type=str(type)).warning(
                "Failed to store notification for member {}: {}", member_id, e
            )
            return None

        if self.dispatcher is not None:
            try:
                await self.dispatcher(notification)
            except Exception as e:
                logger.bind(member_id=member_id, type=str(type)).warning(
                    "Failed to dispatch notification {}: {}", notification.id, e
                )

        return notification

    async def get_inbox(
        self, member_id: int, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        """Get latest notifications of a member, newest first."""
        return await self.notification_repo.get_member_notifications(
            member_id, unread_only=unread_only, limit=limit
        )

    async def count_unread(self, member_id: int) -> int:
        """Count unread notifications of a member."""
        return await self.notification_repo.count_unread(member_id)

    async def mark_all_read(self, member_id: int) -> int:
        """
        Mark every unread notification of a member as read.

        The caller commits.

        Returns:
            Number of notifications marked
        """
        marked = await self.notification_repo.mark_all_read(member_id)
        logger.debug(
            f"Marked {marked} notification(s) read for member {member_id}",
            extra={"member_id": member_id},
        )
        return marked

    async def notify_community_points(
        self,
        member_id: int,
        amount: Decimal,
        level: int,
        is_locked: bool,
        source_member_id: int,
    ) -> Notification | None:
        """Notify an upline member about CP earned from a level."""
        if is_locked:
            message = (
                f"You earned {format_points(amount)} Community Points from "
                f"level {level}. They are on hold until you unlock level {level}."
            )
        else:
            message = (
                f"You earned {format_points(amount)} Community Points from "
                f"level {level}."
            )

        return await self.notify(
            member_id,
            NotificationType.COMMUNITY_POINTS_EARNED,
            "Community Points Earned",
            message,
            {
                "amount": amount,
                "level": level,
                "is_locked": is_locked,
                "source_member_id": source_member_id,
            },
        )

    async def notify_referral_points(
        self, member_id: int, amount: Decimal, from_member_id: int
    ) -> Notification | None:
        """Notify a sponsor about RP earned."""
        return await self.notify(
            member_id,
            NotificationType.REFERRAL_POINTS_EARNED,
            "Referral Points Earned",
            f"You earned {format_points(amount)} Referral Points.",
            {"amount": amount, "from_member_id": from_member_id},
        )

    async def notify_personal_points(
        self, member_id: int, amount: Decimal
    ) -> Notification | None:
        """Notify a member about PP earned."""
        return await self.notify(
            member_id,
            NotificationType.PERSONAL_POINTS_EARNED,
            "Personal Points Earned",
            f"You earned {format_points(amount)} Personal Points.",
            {"amount": amount},
        )

    async def notify_levels_unlocked(
        self,
        member_id: int,
        previous_level: int,
        new_level: int,
        released_amount: Decimal,
        total_referrals: int,
    ) -> Notification | None:
        """Notify a member about newly unlocked levels."""
        message = f"Levels {previous_level + 1}-{new_level} are now unlocked."
        if released_amount > 0:
            message += (
                f" {format_points(released_amount)} Community Points "
                f"moved from on hold to available."
            )

        return await self.notify(
            member_id,
            NotificationType.CP_LEVELS_UNLOCKED,
            "Community Point Levels Unlocked",
            message,
            {
                "previous_unlocked_level": previous_level,
                "new_unlocked_level": new_level,
                "released_cp_amount": released_amount,
                "total_referrals": total_referrals,
            },
        )

    async def notify_referral_invite(
        self, member_id: int, new_member_id: int, new_member_name: str
    ) -> Notification | None:
        """Notify a referrer that the invited member is registered."""
        return await self.notify(
            member_id,
            NotificationType.REFERRAL_INVITE,
            "New Referral Registered",
            f"{new_member_name} joined with your referral.",
            {"new_member_id": new_member_id},
        )
