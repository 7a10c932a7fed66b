"""Pytest fixtures for vectorstore tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pgvecstore.vectorstore.config import VectorStoreConfig
from pgvecstore.vectorstore.pgvector_store import PgVectorStore


@pytest.fixture
def vector_store_config() -> VectorStoreConfig:
    """Default vector store configuration for tests."""
    return VectorStoreConfig(default_limit=10, stream_prefetch=50)


@pytest.fixture
def sample_embedding() -> list[float]:
    """Sample 3-dimensional embedding."""
    return [0.1, 0.2, 0.3]


@pytest.fixture
async def store(
    mock_database: AsyncMock,
    mock_metrics: MagicMock,
    vector_store_config: VectorStoreConfig,
) -> PgVectorStore:
    """An initialized store over the mock database."""
    store = PgVectorStore(
        dimension=3,
        config=vector_store_config,
        database=mock_database,
        metrics=mock_metrics,
    )
    await store.initialize()
    mock_database.execute.reset_mock()
    return store
