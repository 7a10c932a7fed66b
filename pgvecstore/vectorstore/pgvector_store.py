"""
pgvector-backed vector store.

Public surface of the library: composes Database, SchemaInitializer, the
clause/query builders, and the row mapper into add / search / fetch /
exists / delete / update operations over named collections.
"""

import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from types import TracebackType
from typing import Any

import numpy as np
import structlog

from pgvecstore.config.settings import get_settings
from pgvecstore.exceptions import QueryError, SchemaInitError, StoreConnectionError
from pgvecstore.observability.metrics import MetricsCollector, get_metrics
from pgvecstore.storage.config import ConnectionConfig
from pgvecstore.storage.database import Database
from pgvecstore.storage.schema import SchemaInitializer
from pgvecstore.vectorstore.base import SearchConfig, StoreState, VectorRecord
from pgvecstore.vectorstore.config import VectorStoreConfig
from pgvecstore.vectorstore.mapper import encode_embedding, encode_metadata, row_to_record
from pgvecstore.vectorstore.queries import (
    Query,
    collection_stats_query,
    count_query,
    delete_query,
    exists_query,
    insert_query,
    search_query,
    select_query,
    update_metadata_query,
)

logger = structlog.get_logger(__name__)


class PgVectorStore:
    """
    Vector store over a single PostgreSQL table with pgvector.

    Records are grouped by collection name; collections spring into
    existence on first insert and have no other lifecycle.

    Thread-safety: after initialize(), the store's only state is its frozen
    configuration, the embedding dimension, and a Database whose asyncpg
    pool is safe for concurrent use. Every operation is an independent
    request, so one store may be shared by any number of tasks. The store
    adds no locking of its own.

    Lifecycle: UNINITIALIZED -> INITIALIZING -> READY -> CLOSED. If the
    schema bootstrap fails (e.g. the role may not CREATE EXTENSION), the
    store still becomes READY with schema_ready False and works against a
    pre-existing schema. Operations outside READY raise StoreConnectionError.

    Usage:
        async with PgVectorStore(ConnectionConfig(host="db"), dimension=3) as store:
            record = await store.add_vector("docs", [0.1, 0.2, 0.3], "hello")
            hits = await store.search_vector("docs", [0.1, 0.2, 0.3])
    """

    def __init__(
        self,
        connection_config: ConnectionConfig | None = None,
        dimension: int | None = None,
        config: VectorStoreConfig | None = None,
        database: Database | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the store. No I/O happens until initialize().

        Args:
            connection_config: Connection settings (ignored if database is given)
            dimension: Embedding length (defaults to settings.vector_dimension)
            config: Search defaults and index parameters
            database: Pre-built Database, mainly for tests
            metrics: Metrics collector (defaults to the global one)
        """
        self._dimension = dimension or get_settings().vector_dimension
        self._config = config or VectorStoreConfig()
        self._db = database or Database(connection_config)
        self._schema = SchemaInitializer(
            self._db,
            self._dimension,
            hnsw_m=self._config.hnsw_m,
            hnsw_ef_construction=self._config.hnsw_ef_construction,
        )
        self._metrics = metrics or get_metrics()
        self._state = StoreState.UNINITIALIZED
        self._schema_ready = False

    @classmethod
    async def create(
        cls,
        connection_config: ConnectionConfig | None = None,
        dimension: int | None = None,
        config: VectorStoreConfig | None = None,
    ) -> "PgVectorStore":
        """Construct and initialize a store in one step."""
        store = cls(connection_config, dimension=dimension, config=config)
        await store.initialize()
        return store

    # ── Lifecycle ───────────────────────────────────────────

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def schema_ready(self) -> bool:
        """False when the store started without a successful schema bootstrap."""
        return self._schema_ready

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def config(self) -> VectorStoreConfig:
        return self._config

    async def initialize(self) -> None:
        """
        Connect and bootstrap the schema.

        Raises:
            StoreConnectionError: If the database cannot be reached, or the
                store was already initialized or closed
        """
        if self._state is not StoreState.UNINITIALIZED:
            raise StoreConnectionError(f"Cannot initialize a store in state {self._state.value}")

        self._state = StoreState.INITIALIZING
        try:
            await self._db.connect()
        except StoreConnectionError:
            self._state = StoreState.UNINITIALIZED
            raise

        try:
            await self._schema.create_schema()
            self._schema_ready = True
        except SchemaInitError as e:
            self._schema_ready = False
            self._metrics.record_schema_degraded()
            logger.warning(
                "Schema bootstrap failed; continuing with existing schema",
                error=str(e),
            )

        self._state = StoreState.READY
        logger.info(
            "Vector store ready",
            dimension=self._dimension,
            schema_ready=self._schema_ready,
        )

    async def close(self) -> None:
        """Release the connection pool. Closing twice is a no-op."""
        if self._state is StoreState.CLOSED:
            return
        self._state = StoreState.CLOSED
        await self._db.close()
        logger.info("Vector store closed")

    async def __aenter__(self) -> "PgVectorStore":
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── Write ───────────────────────────────────────────────

    async def add_vector(
        self,
        collection: str,
        embedding: Sequence[float] | np.ndarray,
        document: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> VectorRecord:
        """
        Insert one record.

        Args:
            collection: Collection name (created implicitly)
            embedding: Vector of exactly `dimension` floats
            document: Non-empty source text
            metadata: Optional JSON-serializable mapping

        Returns:
            The stored record with its generated id

        Raises:
            SerializationError: Wrong embedding length or unserializable metadata
            ValueError: Empty collection or document
        """
        self._require_ready()
        _check_collection(collection)
        if not isinstance(document, str) or not document:
            raise ValueError("document must be a non-empty string")

        query = insert_query(
            collection,
            encode_embedding(embedding, self._dimension),
            document,
            encode_metadata(metadata),
        )
        with self._track("add_vector"):
            row = await self._db.fetchrow(query.sql, *query.params)

        if row is None:
            raise QueryError("INSERT returned no row")
        record = row_to_record(row)
        logger.debug("Vector added", collection=collection, id=record.id)
        return record

    async def delete_vectors_by_metadata(
        self,
        metadata_filter: Mapping[str, Any] | None,
        collection: str,
    ) -> int:
        """
        Delete every record of a collection matching the filter.

        Returns:
            Number of records deleted (0 if none matched)
        """
        self._require_ready()
        _check_collection(collection)

        query = delete_query(metadata_filter, collection)
        with self._track("delete_vectors_by_metadata"):
            rows = await self._db.fetch(query.sql, *query.params)

        deleted = len(rows)
        logger.info("Deleted vectors", collection=collection, deleted=deleted)
        return deleted

    async def update_metadata_field(
        self,
        metadata_filter: Mapping[str, Any] | None,
        collection: str,
        field_name: str,
        field_value: Any,
        atomic: bool = False,
    ) -> list[VectorRecord]:
        """
        Set one metadata field on every matching record.

        Matching records are fetched first, then updated one statement per
        row; other metadata keys are preserved. By default this is a
        best-effort batch, NOT a transaction: a failure after N of M rows
        leaves the first N updated, and concurrent writers may change or
        delete rows between the fetch and each update (rows deleted in that
        window are skipped). Pass atomic=True to run the fetch and all
        updates in one transaction instead.

        Args:
            metadata_filter: Selects the rows to update
            collection: Collection name
            field_name: Metadata key to set
            field_value: JSON-serializable value
            atomic: Run everything in a single transaction

        Returns:
            The updated records
        """
        self._require_ready()
        _check_collection(collection)
        if not isinstance(field_name, str) or not field_name:
            raise ValueError("field_name must be a non-empty string")

        patch = encode_metadata({field_name: field_value})
        selection = select_query(metadata_filter, collection)

        with self._track("update_metadata_field"):
            if atomic:
                async with self._db.transaction() as conn:
                    records = await _update_rows(conn, selection, patch)
            else:
                records = await _update_rows(self._db, selection, patch)

        logger.info(
            "Updated metadata field",
            collection=collection,
            field=field_name,
            updated=len(records),
            atomic=atomic,
        )
        return records

    # ── Read ────────────────────────────────────────────────

    async def search_vector(
        self,
        collection: str,
        query_vector: Sequence[float] | np.ndarray,
        config: SearchConfig | None = None,
    ) -> list[VectorRecord]:
        """
        Find the records of a collection closest to a query vector.

        Args:
            collection: Collection name
            query_vector: Vector of exactly `dimension` floats
            config: Metric, limit, threshold and metadata filter

        Returns:
            At most config.limit records, ordered by ascending distance
        """
        self._require_ready()
        _check_collection(collection)
        config = config or SearchConfig(
            metric=self._config.default_metric,
            limit=self._config.default_limit,
        )

        query = search_query(
            collection,
            encode_embedding(query_vector, self._dimension),
            config,
        )
        with self._track("search_vector"):
            records = await self._stream_records(query)

        logger.debug(
            "Vector search",
            collection=collection,
            metric=config.metric.value,
            results=len(records),
        )
        return records

    async def fetch_vector_by_metadata(
        self,
        metadata_filter: Mapping[str, Any] | None,
        collection: str,
    ) -> list[VectorRecord]:
        """
        Every record of a collection matching the filter, in no particular order.

        An empty filter (or one whose values are all "") returns the whole
        collection.
        """
        self._require_ready()
        _check_collection(collection)

        query = select_query(metadata_filter, collection)
        with self._track("fetch_vector_by_metadata"):
            return await self._stream_records(query)

    async def exists_by_metadata(
        self,
        metadata_filter: Mapping[str, Any] | None,
        collection: str,
    ) -> bool:
        """True if any record of the collection matches; False, not an error, otherwise."""
        self._require_ready()
        _check_collection(collection)

        query = exists_query(metadata_filter, collection)
        with self._track("exists_by_metadata"):
            return bool(await self._db.fetchval(query.sql, *query.params))

    async def count(
        self,
        collection: str,
        metadata_filter: Mapping[str, Any] | None = None,
    ) -> int:
        """Number of records in a collection matching the filter."""
        self._require_ready()
        _check_collection(collection)

        query = count_query(metadata_filter, collection)
        with self._track("count"):
            return int(await self._db.fetchval(query.sql, *query.params) or 0)

    async def collection_stats(self) -> dict[str, int]:
        """Record count for every collection that has at least one record."""
        self._require_ready()

        query = collection_stats_query()
        with self._track("collection_stats"):
            rows = await self._db.fetch(query.sql, *query.params)
        return {row["collection_name"]: int(row["record_count"]) for row in rows}

    # ── Pass-through ────────────────────────────────────────

    async def execute(self, query: str, *args: Any) -> str:
        """
        Run an arbitrary parameterized statement.

        Returns:
            The raw status string reported by PostgreSQL
        """
        self._require_ready()
        with self._track("execute"):
            return await self._db.execute(query, *args)

    async def health_check(self) -> bool:
        """True if the store is READY and the database answers."""
        if self._state is not StoreState.READY:
            return False
        return await self._db.health_check()

    # ── Internals ───────────────────────────────────────────

    def _require_ready(self) -> None:
        if self._state is not StoreState.READY:
            raise StoreConnectionError(
                f"Vector store is {self._state.value}; operations require ready"
            )

    async def _stream_records(self, query: Query) -> list[VectorRecord]:
        """Drain a streamed result; the cursor is closed on every exit path."""
        async with self._db.stream(
            query.sql,
            *query.params,
            prefetch=self._config.stream_prefetch,
        ) as rows:
            return [row_to_record(row) async for row in rows]

    @contextmanager
    def _track(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        except Exception:
            self._metrics.record_operation(
                operation, "error", latency=time.perf_counter() - start
            )
            raise
        self._metrics.record_operation(
            operation, "success", latency=time.perf_counter() - start
        )


async def _update_rows(executor: Any, selection: Query, patch: str) -> list[VectorRecord]:
    """Fetch matching ids, then merge patch into each row's metadata.

    executor is a Database or an asyncpg Connection; both expose
    fetch() and fetchrow() with the same signature.
    """
    matched = await executor.fetch(selection.sql, *selection.params)

    records: list[VectorRecord] = []
    for row in matched:
        update = update_metadata_query(row["id"], patch)
        updated = await executor.fetchrow(update.sql, *update.params)
        if updated is None:
            # Deleted by another writer after the fetch
            continue
        records.append(row_to_record(updated))
    return records


def _check_collection(collection: str) -> None:
    if not isinstance(collection, str) or not collection:
        raise ValueError("collection must be a non-empty string")
