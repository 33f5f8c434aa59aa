"""
CP level configuration repository.

Data access layer for CpLevelConfig model.
"""

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.constants import LevelRange
from maxreward.models.cp_level_config import CpLevelConfig
from maxreward.repositories.base import BaseRepository


class CpLevelConfigRepository(BaseRepository[CpLevelConfig]):
    """CP level configuration repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize level config repository."""
        super().__init__(CpLevelConfig, session)

    async def get_ordered(self) -> list[CpLevelConfig]:
        """
        Get all level ranges ordered by first level.

        Returns:
            Level ranges
        """
        stmt = select(CpLevelConfig).order_by(CpLevelConfig.level_from)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_level(self, level: int) -> CpLevelConfig | None:
        """
        Get range containing a level.

        Args:
            level: Upline level (1-30)

        Returns:
            Matching range or None
        """
        stmt = (
            select(CpLevelConfig)
            .where(
                CpLevelConfig.level_from <= level,
                CpLevelConfig.level_to >= level,
            )
            .order_by(CpLevelConfig.level_from)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def replace_all(self, rows: Iterable[LevelRange]) -> list[CpLevelConfig]:
        """
        Replace the whole configuration set.

        Must run inside the caller's transaction; validation happens
        before this call.

        Args:
            rows: Validated level ranges

        Returns:
            New configuration rows ordered by first level
        """
        await self.session.execute(delete(CpLevelConfig))

        configs = [
            CpLevelConfig(
                level_from=row.level_from,
                level_to=row.level_to,
                cp_percentage_per_level=row.cp_percentage_per_level,
                total_percentage_for_range=row.total_percentage_for_range,
            )
            for row in rows
        ]
        self.session.add_all(configs)
        await self.session.flush()

        return sorted(configs, key=lambda c: c.level_from)
