"""
Pytest configuration and shared fixtures.

This module provides:
- Environment variable setup for tests
- A sample mapped model registered on the shared Base
- In-memory database session fixtures
"""

import os

import pytest


# Set test environment variables BEFORE any qdb imports
# so settings and the global engine load with test values
os.environ["QDB_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["QDB_ATOMIC_DELETE"] = "false"
os.environ["QDB_LOG_LEVEL"] = "DEBUG"
os.environ["QDB_LOG_JSON"] = "true"

from sqlalchemy import Column, Integer, String  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from qdb.models.base import Base, ModelMixin  # noqa: E402


class Item(Base, ModelMixin):
    """Sample model used across the test suite."""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    colour = Column(String(50), nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    sku = Column(String(64), nullable=True, unique=True)


@pytest.fixture
def item_model():
    """
    Provide the sample mapped class.

    Returns:
        Item declarative class
    """
    return Item


@pytest.fixture
async def async_session():
    """
    Create an in-memory SQLite database session for testing.

    Yields:
        AsyncSession with all tables created
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def seeded_session(async_session: AsyncSession):
    """
    Session holding three items.

    Yields:
        AsyncSession with widget (blue), gadget (red) and gizmo (no colour)
    """
    async_session.add_all([
        Item(name="widget", colour="blue", quantity=3, sku="W-1"),
        Item(name="gadget", colour="red", quantity=5, sku="G-1"),
        Item(name="gizmo", colour=None, quantity=0, sku="Z-1"),
    ])
    await async_session.commit()
    yield async_session
