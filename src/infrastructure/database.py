"""
Ride store engine and sessions.

PostgreSQL through ``asyncpg`` in deployment; the tests point the same
helpers at ``sqlite+aiosqlite``.  The store is a single table, so
``create_tables`` is the whole schema bootstrap (used by ``seed.py``).
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.config import settings


class Base(DeclarativeBase):
    """Declarative base for the ``rides`` table."""


def make_engine(url: str, **kwargs) -> AsyncEngine:
    # SQLite has no server-side pool to size
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_size", settings.db_pool_size)
        kwargs.setdefault("max_overflow", settings.db_max_overflow)
        kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(url, echo=False, **kwargs)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(settings.database_url)
async_session_factory = make_session_factory(engine)


async def create_tables(bind: AsyncEngine = engine) -> None:
    from . import models  # noqa: F401  registers RideModel on Base.metadata

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
