"""
Database session management.
Handles SQLite connection and engine lifecycle with async support.
"""
from pathlib import Path
from typing import Optional

from sqlalchemy import event, Engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from datarium.app.config import get_settings
from datarium.app.db import models  # noqa: F401  (registers tables on SQLModel.metadata)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """
    Switch SQLite to WAL journaling so readers don't block the writer.

    Note: This event listener applies to ALL sync engines (including the one backing async).
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _ensure_sqlite_directory(db_url: str) -> None:
    """Create the parent directory of a file-based SQLite database."""
    if db_url.startswith("sqlite:///"):
        db_path = db_url.replace("sqlite:///", "")
        if db_path in ("", ":memory:"):
            return
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def to_async_url(db_url: str) -> str:
    """Convert sqlite:/// to sqlite+aiosqlite:/// for async."""
    if db_url.startswith("sqlite:///"):
        return db_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return db_url


def get_async_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create and configure the async database engine.

    Args:
        database_url: Explicit database URL; defaults to Settings.DATABASE_URL

    Returns:
        AsyncEngine: SQLAlchemy async engine configured for SQLite with aiosqlite
    """
    db_url = database_url or get_settings().DATABASE_URL
    _ensure_sqlite_directory(db_url)

    engine = create_async_engine(
        to_async_url(db_url),
        echo=False,
        # NullPool for SQLite - each connection is independent
        poolclass=NullPool,
        )
    return engine


async def init_storage(engine: AsyncEngine) -> None:
    """Create the storage tables if they do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
