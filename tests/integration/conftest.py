"""
Shared fixtures for integration tests.

Every test gets a fresh file-backed SQLite database created from the
model metadata, seeded with the default level configuration and the
company reserve row. A file database lets several sessions see each
other's commits.
"""

from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maxreward.config.database import create_engine, create_session_maker
from maxreward.models import (
    Base,
    MemberCommunityPoint,
    MemberWallet,
)
from maxreward.repositories import (
    CompanyReserveRepository,
    MemberRepository,
    MemberWalletRepository,
    ReferralRepository,
)
from maxreward.services.level_config_service import LevelConfigService


@pytest_asyncio.fixture
async def session_maker(tmp_path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session factory bound to a fresh seeded database."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'maxreward.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = create_session_maker(engine)
    async with maker() as session:
        await LevelConfigService(session).seed_defaults()
        await CompanyReserveRepository(session).get_or_create()
        await session.commit()

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncIterator[AsyncSession]:
    """Database session."""
    async with session_maker() as session:
        yield session


class ChainBuilder:
    """Creates members with wallets linked into sponsor chains."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.member_repo = MemberRepository(session)
        self.wallet_repo = MemberWalletRepository(session)
        self.referral_repo = ReferralRepository(session)
        self._counter = 0

    async def member(
        self,
        sponsor_id: int | None = None,
        with_wallet: bool = True,
        total_rp: Decimal = Decimal("0"),
        unlocked_level: int = 5,
        total_referrals: int = 0,
    ) -> int:
        """Create one member, optionally under a sponsor."""
        self._counter += 1
        member = await self.member_repo.create(
            name=f"Member {self._counter}",
            phone=f"+6000000{self._counter:04d}",
        )
        if with_wallet:
            await self.wallet_repo.create(
                member_id=member.id,
                total_rp=total_rp,
                unlocked_level=unlocked_level,
                total_referrals=total_referrals,
            )
        if sponsor_id is not None:
            await self.referral_repo.create(
                parent_member_id=sponsor_id, child_member_id=member.id
            )
        return member.id

    async def chain(self, length: int, **wallet_kwargs) -> list[int]:
        """
        Create a straight sponsor chain.

        Returns:
            Member IDs from root (index 0) down to the deepest member
        """
        ids: list[int] = []
        sponsor_id = None
        for _ in range(length):
            sponsor_id = await self.member(sponsor_id, **wallet_kwargs)
            ids.append(sponsor_id)
        await self.session.commit()
        return ids


@pytest_asyncio.fixture
async def builder(session) -> ChainBuilder:
    """Chain builder on the test session."""
    return ChainBuilder(session)


async def _load_wallet(session: AsyncSession, member_id: int) -> MemberWallet:
    """Load a wallet bypassing the identity map cache."""
    result = await session.execute(
        select(MemberWallet)
        .where(MemberWallet.member_id == member_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _load_levels(
    session: AsyncSession, member_id: int
) -> dict[int, MemberCommunityPoint]:
    """Load per-level CP balances of a member keyed by level."""
    result = await session.execute(
        select(MemberCommunityPoint)
        .where(MemberCommunityPoint.member_id == member_id)
        .execution_options(populate_existing=True)
    )
    return {row.level: row for row in result.scalars().all()}


@pytest.fixture
def load_wallet():
    """Loader of fresh wallet state: await load_wallet(session, member_id)."""
    return _load_wallet


@pytest.fixture
def load_levels():
    """Loader of fresh per-level balances: await load_levels(session, member_id)."""
    return _load_levels
