"""
Vector store over PostgreSQL + pgvector.

Main components:
- PgVectorStore: Public facade (add, search, fetch, exists, delete, update)
- VectorRecord: Typed row returned by reads
- SearchConfig / SimilarityMetric: Similarity search parameters
- VectorStoreConfig: Search defaults and HNSW parameters
- clauses / queries / mapper: Statement composition and row conversion
"""

from pgvecstore.vectorstore.base import (
    SearchConfig,
    SimilarityMetric,
    StoreState,
    VectorRecord,
)
from pgvecstore.vectorstore.config import VectorStoreConfig
from pgvecstore.vectorstore.pgvector_store import PgVectorStore

__all__ = [
    "PgVectorStore",
    "VectorRecord",
    "SearchConfig",
    "SimilarityMetric",
    "StoreState",
    "VectorStoreConfig",
]
