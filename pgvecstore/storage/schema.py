"""
Schema bootstrap for the vector_store table.

Creates the pgvector extension, the table, and its three indexes. Every
statement is idempotent (IF NOT EXISTS), so running it against an existing
schema is a no-op.
"""

import structlog

from pgvecstore.exceptions import (
    QueryError,
    SchemaInitError,
    SerializationError,
    StoreConnectionError,
)
from pgvecstore.storage.database import Database

logger = structlog.get_logger(__name__)

TABLE_NAME = "vector_store"

# pgvector caps indexed vector columns at 2000 dimensions, stored ones at 16000
MAX_VECTOR_DIMENSION = 16000


class SchemaInitializer:
    """
    Idempotent creation of the vector_store schema.

    Tables:
        - vector_store: one row per embedding, partitioned by collection_name

    Indexes:
        - btree on collection_name
        - GIN on metadata (jsonb_path_ops, serves @> containment filters)
        - HNSW on embedding (vector_cosine_ops)
    """

    def __init__(
        self,
        database: Database,
        dimension: int,
        hnsw_m: int = 24,
        hnsw_ef_construction: int = 100,
    ):
        if not 1 <= dimension <= MAX_VECTOR_DIMENSION:
            raise ValueError(
                f"dimension must be between 1 and {MAX_VECTOR_DIMENSION}, got {dimension}"
            )
        self._db = database
        self._dimension = int(dimension)
        self._hnsw_m = int(hnsw_m)
        self._hnsw_ef_construction = int(hnsw_ef_construction)

    def statements(self) -> list[str]:
        """DDL statements in execution order."""
        return [
            "CREATE EXTENSION IF NOT EXISTS vector",
            f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                id SERIAL PRIMARY KEY,
                collection_name TEXT NOT NULL,
                embedding VECTOR({self._dimension}),
                document TEXT NOT NULL,
                metadata JSONB,
                created_at TIMESTAMPTZ DEFAULT NOW(),
                updated_at TIMESTAMPTZ DEFAULT NOW()
            )
            """,
            f"""
            CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_collection_name
                ON {TABLE_NAME} (collection_name)
            """,
            f"""
            CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_metadata
                ON {TABLE_NAME} USING GIN (metadata jsonb_path_ops)
            """,
            f"""
            CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_embedding_hnsw
                ON {TABLE_NAME}
                USING hnsw (embedding vector_cosine_ops)
                WITH (m = {self._hnsw_m}, ef_construction = {self._hnsw_ef_construction})
            """,
        ]

    async def create_schema(self) -> None:
        """
        Run every DDL statement.

        Raises:
            SchemaInitError: If any statement fails (e.g. the role may not
                create extensions). Statements before the failing one stay applied.
        """
        for statement in self.statements():
            try:
                await self._db.execute(statement)
            except (QueryError, SerializationError, StoreConnectionError) as e:
                raise SchemaInitError(f"Schema bootstrap failed: {e}") from e

        logger.info(
            "Schema ready",
            table=TABLE_NAME,
            dimension=self._dimension,
            hnsw_m=self._hnsw_m,
            hnsw_ef_construction=self._hnsw_ef_construction,
        )
