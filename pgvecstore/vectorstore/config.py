"""
Configuration for vector store operations.

Uses Pydantic BaseSettings for environment variable support.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgvecstore.vectorstore.base import SimilarityMetric


class VectorStoreConfig(BaseSettings):
    """
    Configuration for PgVectorStore.

    All settings can be overridden via environment variables with
    VECTORSTORE_ prefix (e.g., VECTORSTORE_DEFAULT_LIMIT=20).
    """

    # Search defaults, used when search_vector() gets no SearchConfig
    default_limit: int = Field(
        default=10,
        ge=1,
        le=10000,
        description="Default number of results to return",
    )
    default_metric: SimilarityMetric = Field(
        default=SimilarityMetric.COSINE,
        description="Default distance function",
    )

    # HNSW build parameters
    hnsw_m: int = Field(
        default=24,
        ge=2,
        le=100,
        description="Max connections per HNSW graph node",
    )
    hnsw_ef_construction: int = Field(
        default=100,
        ge=4,
        le=1000,
        description="Candidate list size while building the HNSW graph",
    )

    # Server-side cursor batch size for streamed reads
    stream_prefetch: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Rows fetched per round trip when streaming results",
    )

    model_config = SettingsConfigDict(env_prefix="VECTORSTORE_", frozen=True)
