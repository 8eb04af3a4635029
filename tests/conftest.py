import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest
import pytest_asyncio

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import build_engine, init_db
from database.models import Address, Campaign, Company, Entry, Review, User, utcnow


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite file per test, so separate connections can race."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


class Factory:
    """Inserts rows directly, bypassing domain validation."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def company(self, **kw) -> Company:
        n = self._next()
        values = dict(
            name=f"Company {n}",
            email=f"company{n}@example.com",
            contact_name="担当 太郎",
            contact_phone="03-0000-0000",
            postal_code="100-0001",
            prefecture="東京都",
            city="千代田区",
            address1="千代田1-1",
        )
        values.update(kw)
        return await self._save(Company(**values))

    async def campaign(
        self,
        company: Company | None = None,
        status: str = "active",
        starts_in: timedelta = timedelta(days=-1),
        ends_in: timedelta = timedelta(days=7),
        **kw,
    ) -> Campaign:
        company = company or await self.company()
        now = utcnow()
        values = dict(
            company_id=company.id,
            title=f"Campaign {self._next()}",
            description="Free samples for early testers",
            status=status,
            start_at=now + starts_in,
            end_at=now + ends_in,
        )
        values.update(kw)
        return await self._save(Campaign(**values))

    async def user(self, **kw) -> User:
        n = self._next()
        values = dict(email=f"user{n}@example.com", hashed_password="not-a-hash", name=f"User {n}")
        values.update(kw)
        return await self._save(User(**values))

    async def address(self, user: User, **kw) -> Address:
        values = dict(
            user_id=user.id,
            postal_code="530-0001",
            prefecture="大阪府",
            city="大阪市北区",
            address1="梅田1-1-1",
            phone="090-0000-0000",
            is_default=False,
        )
        values.update(kw)
        return await self._save(Address(**values))

    async def entry(self, user: User, campaign: Campaign, status: str = "pending") -> Entry:
        return await self._save(Entry(user_id=user.id, campaign_id=campaign.id, status=status))

    async def review(self, user: User, campaign: Campaign, rating: int = 4, comment: str = "Very nice sample!") -> Review:
        return await self._save(Review(user_id=user.id, campaign_id=campaign.id, rating=rating, comment=comment))


@pytest.fixture
def factory(session):
    return Factory(session)
