"""
Database configuration and session management.

This module sets up the async SQLAlchemy engine and provides
request-scoped database sessions for the application.
"""

import logging
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from usermanager.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


class Base(DeclarativeBase):
    """Base class for all models (SQLAlchemy 2.0 style)."""


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_engine_for_url(database_url: str, **kwargs) -> AsyncEngine:
    """
    Build an async engine for the given URL.

    SQLite connections get foreign key enforcement switched on.
    """
    _ensure_sqlite_directory(database_url)
    async_engine = create_async_engine(database_url, echo=settings.database.ECHO_SQL, **kwargs)

    if async_engine.dialect.name == "sqlite":
        @event.listens_for(async_engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            """Enable foreign key constraints on SQLite connections."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return async_engine


engine = create_engine_for_url(settings.database.DATABASE_URL)

# Create session factory
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency function to get a database session.

    Yields:
        AsyncSession: Database session that is closed (and rolled back if a
        transaction is still open) when the request finishes or is cancelled.

    Usage:
        @router.get("/users/{user_id}")
        async def read_user(user_id: UUID, db: AsyncSession = Depends(get_db)):
            ...
    """
    async with SessionLocal() as db:
        yield db


async def init_db(bind: AsyncEngine = None) -> None:
    """
    Initialise the database.

    Creates all tables defined in the models if they don't exist.
    This is called on application startup.
    """
    # Import models so they are registered with Base
    from usermanager.models import user  # noqa: F401

    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database initialised at {bind.url.render_as_string(hide_password=True)}")
