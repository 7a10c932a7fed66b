"""
Integration tests for PgVectorStore.

These tests require a running PostgreSQL instance with pgvector, reachable
through the PGVECTOR_* environment variables.
Run with: PGVECSTORE_INTEGRATION=1 pytest tests/test_vectorstore/test_integration.py -v
"""

import os
import uuid

import numpy as np
import pytest

from pgvecstore.storage.config import ConnectionConfig
from pgvecstore.vectorstore.base import SearchConfig, SimilarityMetric
from pgvecstore.vectorstore.pgvector_store import PgVectorStore

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.environ.get("PGVECSTORE_INTEGRATION"),
        reason="set PGVECSTORE_INTEGRATION=1 to run against a live database",
    ),
]


@pytest.fixture
async def live_store():
    """Initialized store over the live database; skips if unreachable."""
    store = PgVectorStore(ConnectionConfig(), dimension=3)
    try:
        await store.initialize()
    except Exception as e:
        pytest.skip(f"Database not available: {e}")
    yield store
    await store.close()


@pytest.fixture
async def collection(live_store):
    """A unique collection name, emptied after the test."""
    name = f"test_{uuid.uuid4().hex[:12]}"
    yield name
    await live_store.delete_vectors_by_metadata({}, name)


class TestScenarios:
    @pytest.mark.asyncio
    async def test_exists_after_insert(self, live_store, collection):
        await live_store.add_vector(collection, [0.1, 0.2, 0.3], "hello")

        assert await live_store.exists_by_metadata({}, collection) is True

    @pytest.mark.asyncio
    async def test_exists_on_empty_collection(self, live_store, collection):
        assert await live_store.exists_by_metadata({"x": "y"}, collection) is False

    @pytest.mark.asyncio
    async def test_search_same_vector(self, live_store, collection):
        added = await live_store.add_vector(collection, [0.1, 0.2, 0.3], "hello")

        results = await live_store.search_vector(
            collection,
            [0.1, 0.2, 0.3],
            SearchConfig(metric=SimilarityMetric.COSINE, limit=1),
        )

        assert len(results) == 1
        assert results[0].id == added.id
        assert results[0].document == "hello"
        assert results[0].distance == pytest.approx(0.0, abs=1e-6)

    @pytest.mark.asyncio
    async def test_fetch_by_metadata(self, live_store, collection):
        first = await live_store.add_vector(collection, [0.1, 0.2, 0.3], "a", {"cat": "a"})
        await live_store.add_vector(collection, [0.3, 0.2, 0.1], "b", {"cat": "b"})

        results = await live_store.fetch_vector_by_metadata({"cat": "a"}, collection)

        assert [r.id for r in results] == [first.id]

    @pytest.mark.asyncio
    async def test_delete_nothing(self, live_store, collection):
        assert await live_store.delete_vectors_by_metadata({"cat": "none"}, collection) == 0


class TestProperties:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("metric", list(SimilarityMetric))
    async def test_results_ascending_and_within_threshold(
        self, live_store, collection, metric
    ):
        rng = np.random.default_rng(3)
        for i in range(8):
            await live_store.add_vector(collection, rng.random(3), f"doc {i}")

        results = await live_store.search_vector(
            collection,
            [0.5, 0.5, 0.5],
            SearchConfig(metric=metric, limit=8, threshold=0.5),
        )

        distances = [r.distance for r in results]
        assert distances == sorted(distances)
        assert all(d <= 0.5 for d in distances)

    @pytest.mark.asyncio
    async def test_blank_filter_equals_empty_filter(self, live_store, collection):
        await live_store.add_vector(collection, [0.1, 0.2, 0.3], "a", {"cat": "a"})
        await live_store.add_vector(collection, [0.3, 0.2, 0.1], "b")

        everything = await live_store.fetch_vector_by_metadata({}, collection)
        blanks = await live_store.fetch_vector_by_metadata({"cat": ""}, collection)

        assert sorted(r.id for r in everything) == sorted(r.id for r in blanks)
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_delete_count_then_fetch_empty(self, live_store, collection):
        for i in range(3):
            await live_store.add_vector(collection, [0.1, 0.2, 0.3], f"d{i}", {"cat": "x"})
        await live_store.add_vector(collection, [0.1, 0.2, 0.3], "keep", {"cat": "y"})

        assert await live_store.delete_vectors_by_metadata({"cat": "x"}, collection) == 3
        assert await live_store.fetch_vector_by_metadata({"cat": "x"}, collection) == []
        assert await live_store.count(collection) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("atomic", [False, True])
    async def test_update_preserves_other_keys(self, live_store, collection, atomic):
        await live_store.add_vector(
            collection, [0.1, 0.2, 0.3], "d", {"cat": "a", "lang": "en", "status": "new"}
        )

        updated = await live_store.update_metadata_field(
            {"cat": "a"}, collection, "status", "done", atomic=atomic
        )

        assert len(updated) == 1
        assert updated[0].metadata == {"cat": "a", "lang": "en", "status": "done"}

    @pytest.mark.asyncio
    async def test_embedding_and_metadata_round_trip(self, live_store, collection):
        metadata = {"n": 1, "tags": ["a", "b"], "nested": {"ok": True}}
        added = await live_store.add_vector(collection, [0.125, -0.5, 3.0], "d", metadata)

        (fetched,) = await live_store.fetch_vector_by_metadata({}, collection)

        assert fetched.id == added.id
        assert np.allclose(fetched.embedding, [0.125, -0.5, 3.0])
        assert fetched.metadata == metadata
