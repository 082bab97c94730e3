"""Database fixtures for integration tests (in-memory SQLite)."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from kbindex.db.models import Base, TimeSeriesModel


@pytest_asyncio.fixture()
async def engine():
    """Create in-memory database for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(engine) -> AsyncSession:
    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture()
async def session_factory(engine):
    """Session context manager factory with get_session() semantics."""
    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def factory():
        session = SessionLocal()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    return factory


@pytest_asyncio.fixture()
async def seeded_session(db_session, sample_series) -> AsyncSession:
    """Session with the sample series stored for region 11110."""
    db_session.add_all(
        TimeSeriesModel(
            week=p.week,
            region_code=p.region_code,
            region_name=p.region_name,
            sale_index=p.sale_index,
            lease_index=p.lease_index,
            base_date=p.base_date,
            data_source="test",
        )
        for p in sample_series
    )
    await db_session.commit()
    return db_session
