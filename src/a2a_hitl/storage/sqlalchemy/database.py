import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

# --- Base Class for Declarative Models ---
Base = declarative_base()


def normalize_database_url(database_url: str) -> str:
    """Ensures the URL names an async driver (asyncpg for PostgreSQL, aiosqlite for SQLite)."""
    if database_url.startswith("postgresql://"):
        adjusted = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        logger.warning(f"Database URL adjusted to use asyncpg: {adjusted}")
        return adjusted
    if database_url.startswith("sqlite://"):
        adjusted = database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        logger.warning(f"Database URL adjusted to use aiosqlite: {adjusted}")
        return adjusted
    return database_url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Creates the process-wide async engine for the given URL."""
    url = normalize_database_url(database_url)
    try:
        engine = create_async_engine(url, pool_pre_ping=True, echo=echo)
    except Exception as e:
        logger.critical(f"FATAL: Failed to create SQLAlchemy engine: {e}", exc_info=True)
        raise
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    logger.info(f"SQLAlchemy async engine created for dialect '{engine.dialect.name}'.")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Creates every A2A table that does not exist yet."""
    # Register the ORM tables on Base.metadata.
    from . import models  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("A2A tables created (if missing).")


async def drop_tables(engine: AsyncEngine) -> None:
    from . import models  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("A2A tables dropped.")


async def dispose_engine(engine: Optional[AsyncEngine]) -> None:
    if engine is not None:
        await engine.dispose()
        logger.info("SQLAlchemy engine disposed.")
