"""
Referral graph.

Answers upline path and direct referral count questions over the
parent -> child referral edges.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.constants import MAX_CP_LEVELS
from maxreward.models.referral import Referral
from maxreward.repositories.referral_repository import ReferralRepository
from maxreward.utils.exceptions import GraphIntegrityError, ReferralAlreadyExistsError


@dataclass(frozen=True)
class UplineEntry:
    """Ancestor of a member and its distance (1 = direct sponsor)."""

    member_id: int
    level: int


class ReferralGraph:
    """Read-only view of the referral tree."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral graph."""
        self.session = session
        self.referral_repo = ReferralRepository(session)

    async def get_upline_path(
        self, member_id: int, max_levels: int = MAX_CP_LEVELS
    ) -> list[UplineEntry]:
        """
        Get ancestors of a member, nearest first.

        Walks sponsor edges one level at a time and stops at the root or
        after max_levels ancestors.

        Args:
            member_id: Starting member ID
            max_levels: Maximum number of ancestors

        Returns:
            Upline entries, level 1 = direct sponsor; [] for a root member

        Raises:
            GraphIntegrityError: A member appears twice on the path
        """
        path: list[UplineEntry] = []
        visited = {member_id}
        current_id = member_id

        for level in range(1, max_levels + 1):
            parent_id = await self.referral_repo.get_parent_id(current_id)
            if parent_id is None:
                break

            if parent_id in visited:
                cycle = [member_id, *(entry.member_id for entry in path), parent_id]
                logger.critical(
                    "Referral cycle detected",
                    extra={"member_id": member_id, "path": cycle},
                )
                raise GraphIntegrityError(parent_id, cycle)

            visited.add(parent_id)
            path.append(UplineEntry(member_id=parent_id, level=level))
            current_id = parent_id

        logger.debug(
            "Upline path retrieved",
            extra={
                "member_id": member_id,
                "max_levels": max_levels,
                "path_length": len(path),
            },
        )
        return path

    async def add_edge(self, parent_member_id: int, child_member_id: int) -> Referral:
        """
        Create the sponsor edge of a member.

        Args:
            parent_member_id: Sponsor member ID
            child_member_id: Referred member ID

        Returns:
            Created edge

        Raises:
            ReferralAlreadyExistsError: Child already has a sponsor
            GraphIntegrityError: Edge would close a cycle
        """
        existing_parent = await self.referral_repo.get_parent_id(child_member_id)
        if existing_parent is not None:
            raise ReferralAlreadyExistsError(child_member_id, existing_parent)

        if parent_member_id == child_member_id:
            raise GraphIntegrityError(child_member_id, [child_member_id, child_member_id])
        upline = await self.get_upline_path(parent_member_id)
        if any(entry.member_id == child_member_id for entry in upline):
            raise GraphIntegrityError(
                child_member_id,
                [parent_member_id, *(e.member_id for e in upline)],
            )

        return await self.referral_repo.create(
            parent_member_id=parent_member_id,
            child_member_id=child_member_id,
        )

    async def get_sponsor_id(self, member_id: int) -> int | None:
        """Get direct sponsor of a member."""
        return await self.referral_repo.get_parent_id(member_id)

    async def count_direct_referrals(self, member_id: int) -> int:
        """
        Count members directly sponsored by a member.

        Args:
            member_id: Member ID

        Returns:
            Number of direct referrals
        """
        return await self.referral_repo.count_direct_referrals(member_id)
