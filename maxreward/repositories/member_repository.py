"""
Member repository.

Data access layer for Member model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.models.member import Member
from maxreward.repositories.base import BaseRepository


class MemberRepository(BaseRepository[Member]):
    """Member repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize member repository."""
        super().__init__(Member, session)

    async def phone_exists(self, phone: str) -> bool:
        """Check if phone number is already registered."""
        return await self.exists(phone=phone)
