"""
Tests for database engine and session management.

The global engine points at an in-memory SQLite database (see conftest).
"""

import pytest
from sqlalchemy import inspect, select, text

from qdb.core import database
from qdb.core.config import Settings
from qdb.models.base import Base


@pytest.fixture(autouse=True)
async def dispose_global_engine():
    """Drop the shared in-memory connection so each test starts empty."""
    yield
    await database.engine.dispose()


@pytest.fixture
async def global_tables(item_model):
    """Create and drop the sample tables on the global engine."""
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield item_model

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


class TestEngineFactory:
    """Tests for create_engine_from_settings()."""

    async def test_sqlite_engine_enforces_foreign_keys(self):
        # Arrange
        engine = database.create_engine_from_settings(
            Settings(database_url="sqlite+aiosqlite:///:memory:")
        )

        # Act
        async with engine.connect() as conn:
            result = await conn.execute(text("PRAGMA foreign_keys"))
            enabled = result.scalar()
        await engine.dispose()

        # Assert
        assert enabled == 1

    async def test_echo_follows_settings(self):
        # Arrange
        config = Settings(database_url="sqlite+aiosqlite:///:memory:", echo_sql=True)

        # Act
        engine = database.create_engine_from_settings(config)

        # Assert
        assert engine.echo is True


class TestInitDb:
    """Tests for init_db()."""

    async def test_skips_without_flag(self, monkeypatch, item_model):
        # Arrange
        monkeypatch.delenv("QDB_ENABLE_CREATE_ALL", raising=False)

        # Act
        await database.init_db()

        # Assert
        async with database.engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        assert "items" not in tables

    async def test_creates_tables_with_flag(self, monkeypatch, item_model):
        # Arrange
        monkeypatch.setenv("QDB_ENABLE_CREATE_ALL", "true")

        # Act
        await database.init_db()

        # Assert
        async with database.engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        assert "items" in tables

        async with database.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)


class TestGetSession:
    """Tests for get_session()."""

    async def test_commits_on_success(self, global_tables):
        # Arrange
        item_model = global_tables

        # Act
        async for session in database.get_session():
            session.add(item_model(name="committed"))

        # Assert
        async with database.async_session_maker() as session:
            result = await session.execute(select(item_model.name))
            assert result.scalars().all() == ["committed"]

    async def test_rolls_back_on_error(self, global_tables):
        # Arrange
        item_model = global_tables
        sessions = database.get_session()
        session = await sessions.__anext__()
        session.add(item_model(name="discarded"))
        await session.flush()

        # Act
        with pytest.raises(ValueError):
            await sessions.athrow(ValueError("abort"))

        # Assert
        async with database.async_session_maker() as check:
            result = await check.execute(select(item_model.name))
            assert result.scalars().all() == []


class TestDatabaseHealthCheck:
    """Tests for DatabaseHealthCheck."""

    async def test_check_connection_healthy(self):
        assert await database.DatabaseHealthCheck.check_connection() is True


class TestCloseDb:
    """Tests for close_db()."""

    async def test_engine_usable_after_close(self):
        # Arrange
        assert await database.DatabaseHealthCheck.check_connection() is True

        # Act
        await database.close_db()

        # Assert
        assert await database.DatabaseHealthCheck.check_connection() is True
