"""Shared fixtures for settings, the async runtime, and a scratch database."""

import sys
from collections.abc import AsyncIterator
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from rental_sync.config import Settings
from rental_sync.models.base import Base


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        zillow_api_key="test-api-key",
        cron_secret="test-cron-secret",
        app_url="http://testserver",
        database_url="sqlite+aiosqlite://",
        search_locations=["37206, Nashville, TN", "37216, Nashville, TN"],
        locations_per_batch=5,
        max_pages=10,
        rate_limit_wait_seconds=0,
        fetch_cooldown_seconds=5,
        fetch_retries=4,
    )


@pytest.fixture
async def sessionmaker() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """In-memory SQLite database with the rentals schema."""

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()
