"""Integration tests for CP reporting queries."""

from decimal import Decimal

import pytest

from maxreward.models import CpTransactionStatus, DistributionReason, PointType
from maxreward.repositories.cp_transaction_repository import CpTransactionFilters
from maxreward.services.distribution.orchestrator import CommunityPointDistributor
from maxreward.services.reporting import CpReportService
from maxreward.services.unlock.gate import UnlockGate
from maxreward.utils.exceptions import MissingWalletError


@pytest.fixture
def report(session) -> CpReportService:
    return CpReportService(session)


async def _distribute(session, chain: list[int], purchase_id: int | None = None):
    result = await CommunityPointDistributor(session).distribute(
        chain[-1],
        chain[-1],
        Decimal("50"),
        DistributionReason.PURCHASE,
        purchase_id=purchase_id,
    )
    await session.commit()
    return result


@pytest.mark.asyncio
async def test_list_transactions_pages_and_filters(session, builder, report):
    """Ledger listing supports filters, sorting and pagination."""
    chain = await builder.chain(9)
    await _distribute(session, chain, purchase_id=1)

    page = await report.list_transactions(per_page=3, sort_by="level", sort_order="asc")
    assert page["total"] == 8
    assert page["pages"] == 3
    assert [tx.level for tx in page["items"]] == [1, 2, 3]

    held = await report.list_transactions(
        CpTransactionFilters(status=CpTransactionStatus.ONHOLD)
    )
    assert sorted(tx.level for tx in held["items"]) == [6, 7, 8]

    by_level = await report.list_transactions(
        CpTransactionFilters(receiver_member_id=chain[0], purchase_id=1)
    )
    assert by_level["total"] == 1
    assert by_level["items"][0].level == 8


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs",
    [
        {"page": 0},
        {"per_page": 101},
        {"sort_order": "sideways"},
        {"sort_by": "receiver_member_id; drop table"},
    ],
)
async def test_list_transactions_rejects_bad_input(report, kwargs):
    """Invalid paging or sorting raises ValueError."""
    with pytest.raises(ValueError):
        await report.list_transactions(**kwargs)


@pytest.mark.asyncio
async def test_statistics_by_status(session, builder, report):
    """Statistics split ledger totals by status."""
    chain = await builder.chain(8)
    await _distribute(session, chain)

    stats = await report.get_statistics()

    assert stats["total_transactions"] == 7
    assert stats["total_onhold"] == Decimal("7.00")
    assert stats["total_available"] == Decimal("13.50")
    assert stats["total_released"] == Decimal("0.00")
    assert stats["total_cp"] == Decimal("20.50")
    assert stats["by_status"]["onhold"]["count"] == 2


@pytest.mark.asyncio
async def test_member_summary_and_progress(session, builder, report):
    """Member views show per-level balances and the next unlock tier."""
    chain = await builder.chain(8)
    await _distribute(session, chain)

    summary = await report.get_member_cp_summary(chain[0])
    assert summary["onhold_cp"] == Decimal("4.00")
    assert summary["locked_levels"] == 1
    assert summary["levels"][0]["level"] == 7

    progress = await report.get_unlock_progress(chain[0])
    assert progress["unlocked_level"] == 5
    assert progress["next_unlock_level"] == 10
    assert progress["referrals_needed"] == 1
    assert progress["onhold_points"] == Decimal("4.00")

    with pytest.raises(MissingWalletError):
        await report.get_unlock_progress(999_999)


@pytest.mark.asyncio
async def test_unlock_history_newest_first(session, builder, report):
    """History lists unlock events newest first."""
    (member_id,) = await builder.chain(1)
    gate = UnlockGate(session)
    await gate.record_new_referral(member_id)
    await session.commit()
    await gate.record_new_referral(member_id)
    await session.commit()

    history = await report.get_unlock_history(member_id)

    assert [h.new_unlocked_level for h in history] == [15, 10]


@pytest.mark.asyncio
async def test_distribution_pool_view(session, builder, report):
    """Pool view includes its ledger rows and the undistributed remainder."""
    chain = await builder.chain(4)
    result = await _distribute(session, chain)

    view = await report.get_distribution_pool(result.pool_id)

    assert len(view["transactions"]) == 3
    assert view["undistributed_cp"] == Decimal("42.50")

    by_ref = await report.get_distribution_pool_by_ref(result.transaction_ref)
    assert by_ref["pool"].id == result.pool_id
    assert await report.get_distribution_pool_by_ref("CP-MISSING") is None
    assert await report.get_distribution_pool(999_999) is None


@pytest.mark.asyncio
async def test_point_log_by_kind(session, builder, report):
    """The general point log lists a member's rows, newest first."""
    chain = await builder.chain(8)
    await _distribute(session, chain)
    await _distribute(session, chain)

    rows = await report.get_point_transactions(chain[0], kind=PointType.CP)

    assert len(rows) == 2
    assert rows[0].id > rows[1].id
    assert [r.bop for r in rows] == [Decimal("8.00"), Decimal("4.00")]
    assert await report.get_point_transactions(chain[0], kind=PointType.PP) == []
