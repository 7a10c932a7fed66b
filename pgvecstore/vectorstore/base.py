"""
Data models shared by the query engine and the store facade.

Defines the typed record returned by every read, the similarity metrics
the store understands, and per-call search settings.
"""

import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SimilarityMetric(str, Enum):
    """Distance functions supported by pgvector."""

    EUCLIDEAN = "euclidean"
    COSINE = "cosine"
    NEGATIVE_INNER_PRODUCT = "negative_inner_product"

    @property
    def operator(self) -> str:
        """pgvector operator that computes this distance."""
        return _METRIC_OPERATORS[self]


# These select pgvector index operators; they are not free-form strings.
_METRIC_OPERATORS = {
    SimilarityMetric.EUCLIDEAN: "<->",
    SimilarityMetric.COSINE: "<=>",
    SimilarityMetric.NEGATIVE_INNER_PRODUCT: "<#>",
}


class StoreState(str, Enum):
    """Lifecycle of a PgVectorStore."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"


@dataclass
class VectorRecord:
    """
    One row of the vector_store table.

    Attributes:
        id: Database-generated identifier
        collection: Collection the record belongs to
        embedding: Embedding vector (length equals the store dimension)
        document: Source text for the embedding
        metadata: JSON metadata ({} when the column is NULL)
        distance: Distance to the query vector (0.0 outside of searches)
    """

    id: int
    collection: str
    embedding: list[float]
    document: str
    metadata: dict[str, Any] = field(default_factory=dict)
    distance: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.id,
            "collection": self.collection,
            "embedding": list(self.embedding),
            "document": self.document,
            "metadata": dict(self.metadata),
            "distance": self.distance,
        }


@dataclass(frozen=True)
class SearchConfig:
    """
    Settings for a single similarity search.

    Distances are always ranked ascending: smaller is closer for every
    metric, including negative inner product, where pgvector returns the
    negated dot product.

    Attributes:
        metric: Distance function
        limit: Maximum number of results
        threshold: Only return records with distance <= threshold
        metadata_filter: Equality filters on metadata keys (AND logic)
    """

    metric: SimilarityMetric = SimilarityMetric.COSINE
    limit: int = 10
    threshold: float | None = None
    metadata_filter: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and normalise values."""
        # Accept plain strings such as "cosine"
        object.__setattr__(self, "metric", SimilarityMetric(self.metric))
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1:
            raise ValueError(f"limit must be a positive integer, got {self.limit!r}")
        if self.threshold is not None:
            if isinstance(self.threshold, bool) or not isinstance(self.threshold, numbers.Real):
                raise ValueError(f"threshold must be a number, got {self.threshold!r}")
            # NaN compares true against every distance in PostgreSQL
            if not math.isfinite(self.threshold):
                raise ValueError(f"threshold must be finite, got {self.threshold!r}")
        if self.metadata_filter is None:
            object.__setattr__(self, "metadata_filter", {})
