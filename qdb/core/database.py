"""
Database configuration and session management.

Provides SQLAlchemy async engine setup, a session factory, and session
generators for code that drives the CRUD repository.
"""

import os
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from qdb.core.config import Settings, settings
from qdb.core.logging_config import get_logger
from qdb.models.base import Base

logger = get_logger(__name__)


def create_engine_from_settings(config: Settings) -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    For SQLite:
    - Uses StaticPool so an in-memory database survives across sessions
    - Enables check_same_thread=False for async compatibility
    - Turns on foreign key enforcement for every connection

    Args:
        config: Settings carrying the database URL and echo flag

    Returns:
        Configured AsyncEngine instance
    """
    connect_args: dict = {"check_same_thread": False} if config.is_sqlite else {}

    engine_kwargs = {
        "echo": config.echo_sql,
        "connect_args": connect_args,
    }

    if config.is_sqlite:
        engine_kwargs["poolclass"] = StaticPool

    new_engine = create_async_engine(config.database_url, **engine_kwargs)

    if config.is_sqlite:
        @event.listens_for(new_engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


# Global async engine instance
engine = create_engine_from_settings(settings)


# Async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Keep loaded values readable after commit
    autoflush=False,
)


async def init_db() -> None:
    """
    Create tables for every model registered on ``Base``.

    Only runs when QDB_ENABLE_CREATE_ALL is set; use migrations otherwise.
    """
    if os.getenv("QDB_ENABLE_CREATE_ALL", "").lower() not in {"1", "true", "yes"}:
        logger.info("Skipping create_all (QDB_ENABLE_CREATE_ALL not set)")
        return

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Created {len(Base.metadata.tables)} tables")


async def close_db() -> None:
    """
    Dispose of the engine's connection pool.
    """
    await engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a session that commits on success and rolls back on error.

    Yields:
        AsyncSession instance for database operations

    Example:
        async for session in get_session():
            repo = repository_for(session, Item)
            await repo.create({"name": "widget"})
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


class DatabaseHealthCheck:
    """
    Database health check utilities.
    """

    @staticmethod
    async def check_connection() -> bool:
        """
        Check if database connection is healthy.

        Returns:
            True if database is reachable, False otherwise
        """
        try:
            async with async_session_maker() as session:
                await session.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False
