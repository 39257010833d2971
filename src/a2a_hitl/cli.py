import asyncio
import importlib
import logging
from typing import List, Optional

import click

from .config import configure_logging, get_settings
from .exceptions import ConfigurationError
from .executor import Executor

logger = logging.getLogger(__name__)


def load_executors(spec: Optional[str]) -> List[Executor]:
    """Loads executors from ``module:attribute``; the attribute is an Executor or a sequence of them."""
    if not spec:
        return []
    module_name, _, attr = spec.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"Executor spec must look like 'package.module:attribute', got '{spec}'")
    try:
        target = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load executors from '{spec}': {e}") from e
    executors = [target] if isinstance(target, Executor) else list(target)
    for executor in executors:
        if not isinstance(executor, Executor):
            raise ConfigurationError(f"'{spec}' contains a non-executor value: {executor!r}")
    return executors


@click.group()
@click.version_option(package_name="a2a-hitl", prog_name="a2a-hitl")
def cli():
    """
    A2A HITL: run the task server and manage its database.
    """
    pass


@cli.command("serve")
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to bind.")
@click.option("--executors", "executors_spec", default=None, help="Executors to register, as 'package.module:attribute'.")
def serve_command(host: str, port: int, executors_spec: Optional[str]):
    """Run the A2A server with uvicorn."""
    import uvicorn
    from .main import create_app

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    try:
        executors = load_executors(executors_spec)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    click.echo(f"Starting {settings.PROJECT_NAME} on {host}:{port} with {len(executors)} executor(s).")
    uvicorn.run(create_app(settings, executors=executors), host=host, port=port)


@cli.command("init-db")
@click.option("--database-url", default=None, help="Database URL (defaults to DATABASE_URL).")
def init_db_command(database_url: Optional[str]):
    """Create the A2A tables in the configured database."""
    from .storage.sqlalchemy import SQLAlchemyStorageAdapter

    url = database_url or get_settings().DATABASE_URL
    if not url:
        raise click.ClickException("No database URL given. Pass --database-url or set DATABASE_URL.")

    async def _init() -> None:
        adapter = SQLAlchemyStorageAdapter.from_url(url)
        try:
            await adapter.create_tables()
        finally:
            await adapter.close()

    asyncio.run(_init())
    click.secho("A2A tables created.", fg="green")


if __name__ == "__main__":
    cli()
