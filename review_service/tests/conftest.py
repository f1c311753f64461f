from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

from review_service.core.config import Settings
from review_service.db import SqlRatingStore
from review_service.main import create_app
from review_service.models.rating import Rating  # noqa: F401  registers the table
from review_service.services.rating_service import RatingService
from review_service.utils.auth import create_rater_token


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture(scope="function")
async def async_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test-reviews.db", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)  # ลบตารางก่อน
        await conn.run_sync(SQLModel.metadata.create_all)  # สร้างตารางใหม่
    yield engine
    await engine.dispose()


@pytest.fixture
def store(async_engine):
    return SqlRatingStore(async_engine)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def service(store, clock):
    return RatingService(store, clock=clock)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        SECRET_KEY="test-secret",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path}/unused.db",
        STORAGE_BACKEND="sql",
        REQUIRE_AUTH_FOR_GLOBAL_STATS=False,
    )


@pytest_asyncio.fixture
async def client(settings, store):
    app = create_app(settings, store=store)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers(settings):
    def make(rater_id: str) -> dict:
        return {"Authorization": f"Bearer {create_rater_token(rater_id, settings)}"}

    return make
