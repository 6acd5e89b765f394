"""Async database engine and session helpers."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rental_sync.config import get_settings

_engines: dict[str, AsyncEngine] = {}
_sessionmakers: dict[str, async_sessionmaker[AsyncSession]] = {}


def get_engine(*, read_only: bool = False) -> AsyncEngine:
    """Return a cached async engine for the privileged or the public role."""

    settings = get_settings()
    url = settings.effective_read_url if read_only else settings.database_url
    engine = _engines.get(url)
    if engine is None:
        engine = create_async_engine(url, pool_pre_ping=True)
        _engines[url] = engine
    return engine


def get_sessionmaker(*, read_only: bool = False) -> async_sessionmaker[AsyncSession]:
    """Return a cached async sessionmaker."""

    engine = get_engine(read_only=read_only)
    key = str(engine.url)
    maker = _sessionmakers.get(key)
    if maker is None:
        maker = async_sessionmaker(engine, expire_on_commit=False)
        _sessionmakers[key] = maker
    return maker


async def dispose_engines() -> None:
    """Close every pooled connection; called on application shutdown."""

    for engine in list(_engines.values()):
        await engine.dispose()
    _engines.clear()
    _sessionmakers.clear()


@asynccontextmanager
async def session_context(*, read_only: bool = False) -> AsyncIterator[AsyncSession]:
    """Yield an async database session within a context manager."""

    session = get_sessionmaker(read_only=read_only)()
    try:
        yield session
    finally:
        await session.close()


async def get_read_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency for the public (read) session."""

    async with session_context(read_only=True) as session:
        yield session
