"""Pytest fixtures for pgvecstore tests."""

import json
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from pgvecstore.config.settings import Settings


def make_row(
    id: int = 1,
    collection: str = "docs",
    embedding: str = "[0.1,0.2,0.3]",
    document: str = "hello",
    metadata: dict[str, Any] | None = None,
    distance: float | None = None,
) -> dict[str, Any]:
    """A vector_store row as asyncpg returns it (pgvector and JSONB as text)."""
    row: dict[str, Any] = {
        "id": id,
        "collection_name": collection,
        "embedding": embedding,
        "document": document,
        "metadata": json.dumps(metadata) if metadata is not None else None,
    }
    if distance is not None:
        row["distance"] = distance
    return row


async def _aiter(rows: list[dict[str, Any]]):
    for row in rows:
        yield row


def stream_returning(rows: list[dict[str, Any]]) -> MagicMock:
    """Mock for Database.stream() that yields rows and records its calls."""

    @asynccontextmanager
    async def _stream(query: str, *args: Any, **kwargs: Any):
        yield _aiter(rows)

    return MagicMock(side_effect=_stream)


@pytest.fixture(name="make_row")
def make_row_fixture():
    """Factory for vector_store rows."""
    return make_row


@pytest.fixture(name="stream_returning")
def stream_returning_fixture():
    """Factory for Database.stream() mocks."""
    return stream_returning


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        vector_dimension=3,
    )


@pytest.fixture
def mock_database() -> AsyncMock:
    """Mock Database instance matching the Database API."""
    db = AsyncMock()
    db.connect = AsyncMock()
    db.close = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    db.fetchrow = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="OK")
    db.health_check = AsyncMock(return_value=True)
    db.stream = stream_returning([])
    return db


@pytest.fixture
def mock_metrics() -> MagicMock:
    """Stand-in for the Prometheus MetricsCollector."""
    return MagicMock()
