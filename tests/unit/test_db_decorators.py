"""Tests for database retry and rollback decorators."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from maxreward.utils.db_decorators import (
    retry_on_conflict,
    with_auto_commit,
    with_rollback_on_error,
)
from maxreward.utils.exceptions import ConcurrencyConflictError, is_lock_conflict


def _locked() -> OperationalError:
    return OperationalError("UPDATE member_wallets", {}, Exception("database is locked"))


class _Service:
    """Minimal service holding a session, like BaseService subclasses."""

    def __init__(self, outcomes: list) -> None:
        self.session = AsyncMock(spec=AsyncSession)
        self.outcomes = outcomes
        self.calls = 0

    @retry_on_conflict(max_attempts=3, backoff_seconds=0)
    async def run(self) -> str:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.mark.asyncio
async def test_retry_succeeds_after_conflicts():
    service = _Service([_locked(), _locked(), "done"])

    assert await service.run() == "done"
    assert service.calls == 3
    assert service.session.rollback.await_count == 2


@pytest.mark.asyncio
async def test_retry_exhaustion_raises_conflict_error():
    service = _Service([_locked(), _locked(), _locked()])

    with pytest.raises(ConcurrencyConflictError) as exc_info:
        await service.run()

    assert exc_info.value.attempts == 3
    assert exc_info.value.operation == "run"
    assert service.session.rollback.await_count == 3


@pytest.mark.asyncio
async def test_non_conflict_error_is_not_retried():
    service = _Service([ValueError("bad input"), "never"])

    with pytest.raises(ValueError, match="bad input"):
        await service.run()

    assert service.calls == 1
    service.session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_auto_commit_commits_and_rolls_back():
    session = AsyncMock(spec=AsyncSession)

    @with_auto_commit
    async def ok(session):
        return 1

    @with_auto_commit
    async def fails(session):
        raise RuntimeError("boom")

    assert await ok(session) == 1
    session.commit.assert_awaited_once()

    with pytest.raises(RuntimeError):
        await fails(session)
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_rollback_on_error_reraises():
    session = AsyncMock(spec=AsyncSession)

    @with_rollback_on_error
    async def fails(session):
        raise _locked()

    with pytest.raises(OperationalError):
        await fails(session=session)
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_rollback_with_braces_is_logged():
    """A rollback error whose text holds braces is logged, not raised."""
    session = AsyncMock(spec=AsyncSession)
    session.rollback.side_effect = RuntimeError('connection lost: {"code": 57}')

    @with_rollback_on_error
    async def fails(session):
        raise ValueError("bad input")

    with pytest.raises(ValueError, match="bad input"):
        await fails(session=session)
    session.rollback.assert_awaited_once()


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (_locked(), True),
        (OperationalError("SELECT", {}, SimpleNamespace(sqlstate="40P01")), True),
        (OperationalError("SELECT", {}, SimpleNamespace(sqlstate="55P03")), True),
        (OperationalError("SELECT", {}, Exception("no such table: members")), False),
        (IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")), False),
        (ValueError("database is locked"), False),
    ],
)
def test_is_lock_conflict(error, expected):
    assert is_lock_conflict(error) is expected
