"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support (SQLite via aiosqlite, PostgreSQL via asyncpg).
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from icondo.app.core.config import settings


def _engine_options(database_url: str) -> dict:
    options = {"echo": settings.db_echo, "future": True}
    # SQLite uses a single-file/in-memory pool that rejects sizing arguments
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return options


# Create async engine
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()

# Largest value an Integer key column holds (int4 on Postgres, checked before SQLite binds it)
MAX_ROW_ID = 2_147_483_647


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
