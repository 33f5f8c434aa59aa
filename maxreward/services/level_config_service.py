"""
Level configuration service.

Validates, stores and queries the table mapping upline levels to
community point percentages.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.config.constants import (
    DEFAULT_LEVEL_CONFIG,
    LEVEL_CONFIG_ROW_COUNT,
    LEVEL_CONFIG_TOTAL_PERCENT,
    MAX_CP_LEVELS,
    MIN_CP_LEVEL,
    LevelRange,
)
from maxreward.models.cp_level_config import CpLevelConfig
from maxreward.repositories.cp_level_config_repository import (
    CpLevelConfigRepository,
)
from maxreward.services.base_service import BaseService, transaction
from maxreward.utils.exceptions import ConfigIntegrityError
from maxreward.utils.money import percent_of, quantize_percent, quantize_points


def _coerce_row(row: LevelRange | Mapping[str, Any]) -> LevelRange:
    """Build a LevelRange from a mapping (admin payload) or pass it through."""
    if isinstance(row, LevelRange):
        return LevelRange(
            int(row.level_from),
            int(row.level_to),
            quantize_percent(row.cp_percentage_per_level),
            quantize_percent(row.total_percentage_for_range),
        )

    try:
        return LevelRange(
            int(row["level_from"]),
            int(row["level_to"]),
            quantize_percent(row["cp_percentage_per_level"]),
            quantize_percent(row["total_percentage_for_range"]),
        )
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise ConfigIntegrityError(f"Malformed level config row {row!r}: {e}") from e


def validate_config_set(
    rows: Iterable[LevelRange | Mapping[str, Any]],
) -> list[LevelRange]:
    """
    Validate a complete level configuration set.

    Rules:
    - exactly five rows
    - each row total == per-level percentage x number of levels
    - ranges cover levels 1-30 without gaps or overlaps
    - range totals add up to 100.00

    Args:
        rows: Candidate rows

    Returns:
        Normalized rows ordered by first level

    Raises:
        ConfigIntegrityError: Any rule is violated (all problems listed)
    """
    ranges = sorted((_coerce_row(row) for row in rows), key=lambda r: r.level_from)
    errors: list[str] = []

    if len(ranges) != LEVEL_CONFIG_ROW_COUNT:
        errors.append(
            f"Expected {LEVEL_CONFIG_ROW_COUNT} level ranges, got {len(ranges)}"
        )

    for r in ranges:
        label = f"Levels {r.level_from}-{r.level_to}"
        if r.level_from < MIN_CP_LEVEL or r.level_to > MAX_CP_LEVELS:
            errors.append(
                f"{label}: levels must be within {MIN_CP_LEVEL}-{MAX_CP_LEVELS}"
            )
        if r.level_to < r.level_from:
            errors.append(f"{label}: level_to is before level_from")
            continue
        if r.cp_percentage_per_level < 0:
            errors.append(f"{label}: percentage cannot be negative")

        expected = quantize_percent(r.cp_percentage_per_level * r.level_count)
        if r.total_percentage_for_range != expected:
            errors.append(
                f"{label}: total {r.total_percentage_for_range} != "
                f"{r.cp_percentage_per_level} x {r.level_count} = {expected}"
            )

    next_level = MIN_CP_LEVEL
    for r in ranges:
        if r.level_from > next_level:
            errors.append(f"Gap: levels {next_level}-{r.level_from - 1} not covered")
        elif r.level_from < next_level:
            errors.append(
                f"Overlap: level {r.level_from} covered more than once"
            )
        next_level = max(next_level, r.level_to + 1)
    if next_level <= MAX_CP_LEVELS:
        errors.append(f"Gap: levels {next_level}-{MAX_CP_LEVELS} not covered")

    grand_total = quantize_percent(
        sum((r.total_percentage_for_range for r in ranges), Decimal("0"))
    )
    if grand_total != LEVEL_CONFIG_TOTAL_PERCENT:
        errors.append(
            f"Range totals sum to {grand_total}, expected {LEVEL_CONFIG_TOTAL_PERCENT}"
        )

    if errors:
        raise ConfigIntegrityError(
            "Invalid level configuration: " + "; ".join(errors), errors
        )

    return ranges


def percentage_for_level(
    configs: Iterable[CpLevelConfig | LevelRange], level: int
) -> Decimal:
    """
    Find per-level percentage in an already loaded configuration.

    Returns:
        Percentage, Decimal("0") when no range covers the level
    """
    for config in configs:
        if config.level_from <= level <= config.level_to:
            return quantize_percent(config.cp_percentage_per_level)
    return Decimal("0")


class LevelConfigService(BaseService):
    """Level configuration administration and lookups."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize level config service."""
        super().__init__(session)
        self.config_repo = CpLevelConfigRepository(session)

    async def get_configs(self) -> list[CpLevelConfig]:
        """Get stored ranges ordered by first level."""
        return await self.config_repo.get_ordered()

    async def get_percentage_for_level(self, level: int) -> Decimal:
        """
        Get CP percentage of a single level.

        Args:
            level: Upline level

        Returns:
            Percentage, 0 when no range matches
        """
        config = await self.config_repo.get_for_level(level)
        if config is None:
            return Decimal("0")
        return quantize_percent(config.cp_percentage_per_level)

    async def get_all_level_percentages(self) -> dict[int, Decimal]:
        """
        Get percentage for every level 1-30.

        Returns:
            Level -> percentage (0 for uncovered levels)
        """
        configs = await self.get_configs()
        return {
            level: percentage_for_level(configs, level)
            for level in range(MIN_CP_LEVEL, MAX_CP_LEVELS + 1)
        }

    async def get_breakdown(self) -> list[dict[str, Any]]:
        """
        Get ranges in a display-friendly form.

        Returns:
            One dict per range with label, level count and percentages
        """
        return [
            {
                "id": config.id,
                "level_range": f"{config.level_from}-{config.level_to}",
                "level_from": config.level_from,
                "level_to": config.level_to,
                "level_count": config.level_count,
                "cp_percentage_per_level": quantize_percent(
                    config.cp_percentage_per_level
                ),
                "total_percentage_for_range": quantize_percent(
                    config.total_percentage_for_range
                ),
            }
            for config in await self.get_configs()
        ]

    async def verify_total_percentage(self) -> tuple[bool, Decimal]:
        """
        Check that stored range totals add up to 100.

        Returns:
            Tuple of (is_valid, total)
        """
        configs = await self.get_configs()
        total = quantize_percent(
            sum(
                (quantize_percent(c.total_percentage_for_range) for c in configs),
                Decimal("0"),
            )
        )
        is_valid = total == LEVEL_CONFIG_TOTAL_PERCENT
        if not is_valid:
            self.logger.warning(
                "Level configuration total is not 100",
                extra={"total": str(total)},
            )
        return is_valid, total

    async def calculate_distribution(self, cp_pool: Decimal) -> dict[str, Any]:
        """
        Preview how a CP pool splits across all 30 levels.

        Args:
            cp_pool: CP amount to distribute

        Returns:
            Dict with per-level amounts and their total
        """
        cp_pool = quantize_points(cp_pool)
        percentages = await self.get_all_level_percentages()

        levels = [
            {
                "level": level,
                "percentage": percentage,
                "amount": percent_of(cp_pool, percentage),
            }
            for level, percentage in percentages.items()
        ]
        total = sum((item["amount"] for item in levels), Decimal("0.00"))

        return {
            "cp_pool": cp_pool,
            "levels": levels,
            "total_distributed": quantize_points(total),
        }

    @transaction
    async def bulk_replace(
        self, rows: Iterable[LevelRange | Mapping[str, Any]]
    ) -> list[CpLevelConfig]:
        """
        Validate and replace the whole configuration set atomically.

        Args:
            rows: Five level ranges

        Returns:
            Stored ranges

        Raises:
            ConfigIntegrityError: Set is invalid; nothing is changed
        """
        ranges = validate_config_set(rows)
        configs = await self.config_repo.replace_all(ranges)

        self.logger.info(
            "Level configuration replaced",
            extra={
                "ranges": [
                    f"{r.level_from}-{r.level_to}@{r.cp_percentage_per_level}"
                    for r in ranges
                ]
            },
        )
        return configs

    @transaction
    async def seed_defaults(self) -> bool:
        """
        Store the default configuration if none exists.

        Returns:
            True if defaults were inserted
        """
        if await self.config_repo.count() > 0:
            self.logger.info("Level configuration already present, skipping seed")
            return False

        await self.config_repo.replace_all(validate_config_set(DEFAULT_LEVEL_CONFIG))
        self.logger.info("Default level configuration seeded")
        return True
