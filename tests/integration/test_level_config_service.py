"""Integration tests for level configuration administration."""

from decimal import Decimal

import pytest

from maxreward.config.constants import DEFAULT_LEVEL_CONFIG
from maxreward.services.level_config_service import LevelConfigService
from maxreward.utils.exceptions import ConfigIntegrityError


@pytest.mark.asyncio
async def test_defaults_are_seeded_once(session):
    """The fixture already seeded defaults, so seeding again is skipped."""
    service = LevelConfigService(session)

    assert await service.seed_defaults() is False
    configs = await service.get_configs()
    assert [(c.level_from, c.level_to) for c in configs] == [
        (r.level_from, r.level_to) for r in DEFAULT_LEVEL_CONFIG
    ]


@pytest.mark.asyncio
async def test_percentage_lookups(session):
    """Per-level percentages follow the default ranges."""
    service = LevelConfigService(session)

    assert await service.get_percentage_for_level(1) == Decimal("5.00")
    assert await service.get_percentage_for_level(7) == Decimal("8.00")
    assert await service.get_percentage_for_level(20) == Decimal("3.00")
    assert await service.get_percentage_for_level(31) == Decimal("0")

    percentages = await service.get_all_level_percentages()
    assert len(percentages) == 30
    assert sum(percentages.values()) == Decimal("100.00")


@pytest.mark.asyncio
async def test_verify_total_percentage(session):
    """Seeded ranges add up to 100."""
    assert await LevelConfigService(session).verify_total_percentage() == (
        True,
        Decimal("100.00"),
    )


@pytest.mark.asyncio
async def test_calculate_distribution_preview(session):
    """A 50 CP pool splits fully across the 30 levels."""
    preview = await LevelConfigService(session).calculate_distribution(Decimal("50"))

    amounts = {item["level"]: item["amount"] for item in preview["levels"]}
    assert amounts[1] == Decimal("2.50")
    assert amounts[7] == Decimal("4.00")
    assert amounts[15] == Decimal("1.50")
    assert amounts[30] == Decimal("0.50")
    assert preview["total_distributed"] == Decimal("50.00")


@pytest.mark.asyncio
async def test_breakdown_labels(session):
    """Breakdown rows carry a range label and level count."""
    breakdown = await LevelConfigService(session).get_breakdown()

    assert breakdown[3]["level_range"] == "10-20"
    assert breakdown[3]["level_count"] == 11
    assert breakdown[3]["total_percentage_for_range"] == Decimal("33.00")


@pytest.mark.asyncio
async def test_bulk_replace_swaps_whole_set(session):
    """A valid set replaces all rows."""
    service = LevelConfigService(session)
    rows = [
        {"level_from": 1, "level_to": 5, "cp_percentage_per_level": "6", "total_percentage_for_range": "30"},
        {"level_from": 6, "level_to": 10, "cp_percentage_per_level": "4", "total_percentage_for_range": "20"},
        {"level_from": 11, "level_to": 15, "cp_percentage_per_level": "4", "total_percentage_for_range": "20"},
        {"level_from": 16, "level_to": 20, "cp_percentage_per_level": "2", "total_percentage_for_range": "10"},
        {"level_from": 21, "level_to": 30, "cp_percentage_per_level": "2", "total_percentage_for_range": "20"},
    ]

    stored = await service.bulk_replace(rows)

    assert len(stored) == 5
    assert await service.get_percentage_for_level(3) == Decimal("6.00")
    assert await service.get_percentage_for_level(25) == Decimal("2.00")


@pytest.mark.asyncio
async def test_invalid_set_leaves_prior_rows(session):
    """A four-row set is rejected and the stored set is unchanged."""
    service = LevelConfigService(session)
    rows = [r._asdict() for r in DEFAULT_LEVEL_CONFIG[:4]]

    with pytest.raises(ConfigIntegrityError) as exc_info:
        await service.bulk_replace(rows)

    assert any("Expected 5" in error for error in exc_info.value.errors)
    configs = await service.get_configs()
    assert len(configs) == 5
    assert await service.get_percentage_for_level(25) == Decimal("1.00")
