"""
Command-line interface for pgvecstore.

Provides commands to bootstrap the schema and inspect a database.
Connection options default to the PGVECTOR_* environment variables.

Usage:
    pgvecstore init-schema --dimension 768   # Create extension, table, indexes
    pgvecstore health                        # Check the database answers
    pgvecstore stats                         # Record count per collection
"""

import asyncio
import os
import sys
from typing import Any, get_args

import click
import structlog

from pgvecstore.config.settings import get_settings
from pgvecstore.exceptions import VectorStoreError
from pgvecstore.observability.logging import setup_logging
from pgvecstore.storage.config import ConnectionConfig
from pgvecstore.storage.database import Database
from pgvecstore.storage.schema import SchemaInitializer
from pgvecstore.vectorstore.config import VectorStoreConfig
from pgvecstore.vectorstore.queries import collection_stats_query

logger = structlog.get_logger(__name__)

SSL_MODES = list(get_args(ConnectionConfig.model_fields["ssl"].annotation))


def connection_options(func):
    """Shared --host/--port/--user/--password/--database options."""
    options = [
        click.option("--host", default=None, help="Database host"),
        click.option("--port", type=int, default=None, help="Database port"),
        click.option("--user", default=None, help="Database user"),
        click.option("--password", default=None, help="Database password"),
        click.option("--database", default=None, help="Database name"),
        click.option(
            "--ssl",
            type=click.Choice(SSL_MODES),
            default=None,
            help="TLS mode (default: require)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_connection_config(**overrides: Any) -> ConnectionConfig:
    """ConnectionConfig from env vars, with explicitly passed options on top."""
    return ConnectionConfig(**{k: v for k, v in overrides.items() if v is not None})


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """pgvecstore - vector collections in PostgreSQL with pgvector."""
    if debug:
        os.environ["PGVECSTORE_LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command("init-schema")
@connection_options
@click.option("--dimension", type=int, default=None, help="Embedding dimension")
def init_schema(dimension: int | None, **conn: Any) -> None:
    """Create the pgvector extension, vector_store table, and indexes."""
    config = build_connection_config(**conn)
    dimension = dimension or get_settings().vector_dimension
    store_config = VectorStoreConfig()

    async def run() -> None:
        async with Database(config) as db:
            initializer = SchemaInitializer(
                db,
                dimension,
                hnsw_m=store_config.hnsw_m,
                hnsw_ef_construction=store_config.hnsw_ef_construction,
            )
            await initializer.create_schema()

    try:
        asyncio.run(run())
    except VectorStoreError as e:
        click.echo(f"Schema initialization failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"Schema initialized (dimension={dimension})")


@main.command()
@connection_options
def health(**conn: Any) -> None:
    """Check that the database is reachable."""
    config = build_connection_config(**conn)

    async def check() -> bool:
        try:
            async with Database(config) as db:
                return await db.health_check()
        except VectorStoreError as e:
            logger.error("Postgres health check failed", error=str(e))
            return False

    healthy = asyncio.run(check())

    click.echo("\nHealth Check Results:")
    click.echo("-" * 40)
    status = click.style("OK", fg="green") if healthy else click.style("FAIL", fg="red")
    click.echo(f"  postgres: {status}")
    click.echo("-" * 40)

    if not healthy:
        sys.exit(1)


@main.command()
@connection_options
def stats(**conn: Any) -> None:
    """Show the number of records in each collection."""
    config = build_connection_config(**conn)

    async def run() -> dict[str, int]:
        query = collection_stats_query()
        async with Database(config) as db:
            rows = await db.fetch(query.sql, *query.params)
        return {row["collection_name"]: int(row["record_count"]) for row in rows}

    try:
        counts = asyncio.run(run())
    except VectorStoreError as e:
        click.echo(f"Failed to read collection stats: {e}", err=True)
        sys.exit(1)

    if not counts:
        click.echo("No collections")
        return

    width = max(len(name) for name in counts)
    for name, count in counts.items():
        click.echo(f"{name:<{width}}  {count}")
    click.echo(f"{'total':<{width}}  {sum(counts.values())}")


if __name__ == "__main__":
    main()
