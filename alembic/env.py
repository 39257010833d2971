import asyncio
import logging
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from a2a_hitl.config import get_settings
from a2a_hitl.storage.sqlalchemy import models  # noqa: F401
from a2a_hitl.storage.sqlalchemy.database import Base, normalize_database_url

log = logging.getLogger(__name__)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """Return the database URL with an async driver."""
    db_url = config.get_main_option("sqlalchemy.url") or get_settings().DATABASE_URL
    if not db_url:
        raise ValueError("DATABASE_URL environment variable must be set.")
    return normalize_database_url(db_url)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=connection.dialect.name == "sqlite")
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations in 'online' mode using an async engine."""
    connectable_cfg = config.get_section(config.config_ini_section) or {}
    connectable_cfg["sqlalchemy.url"] = get_url()
    connectable = async_engine_from_config(connectable_cfg, prefix="sqlalchemy.", poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()
    log.info("Migrations complete.")


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
