"""
pgvecstore - collections of embeddings stored in PostgreSQL with pgvector.

Main components:
- PgVectorStore: Public facade (add, search, fetch, exists, delete, update)
- ConnectionConfig: Connection settings for the backing database
- SearchConfig / SimilarityMetric: Similarity search parameters
- VectorRecord: Typed row returned by every read operation
"""

from pgvecstore.exceptions import (
    QueryError,
    SchemaInitError,
    SerializationError,
    StoreConnectionError,
    VectorStoreError,
)
from pgvecstore.storage.config import ConnectionConfig
from pgvecstore.storage.database import Database
from pgvecstore.vectorstore import (
    PgVectorStore,
    SearchConfig,
    SimilarityMetric,
    StoreState,
    VectorRecord,
)

__all__ = [
    "PgVectorStore",
    "ConnectionConfig",
    "Database",
    "SearchConfig",
    "SimilarityMetric",
    "StoreState",
    "VectorRecord",
    "VectorStoreError",
    "StoreConnectionError",
    "SchemaInitError",
    "QueryError",
    "SerializationError",
]
