"""
Conversion between Python values and the vector_store column formats.

Embeddings travel as pgvector text literals ("[0.1,0.2,0.3]") and JSONB as
JSON text; asyncpg hands both back as strings unless a codec is registered,
so decoders accept either form.
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from pgvecstore.exceptions import SerializationError
from pgvecstore.vectorstore.base import VectorRecord


def encode_embedding(embedding: Sequence[float] | np.ndarray, dimension: int) -> str:
    """Convert an embedding to pgvector string format.

    Args:
        embedding: List, tuple or 1-d numpy array of floats.
        dimension: Required length.

    Returns:
        String like "[0.1,0.2,0.3]".

    Raises:
        SerializationError: On wrong length, wrong shape, or non-finite values.
    """
    if isinstance(embedding, (str, bytes)):
        raise SerializationError("Embedding must be a sequence of floats, not a string")
    try:
        values = np.asarray(embedding, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Embedding is not numeric: {e}") from e

    if values.ndim != 1:
        raise SerializationError(f"Embedding must be 1-dimensional, got shape {values.shape}")
    if values.shape[0] != dimension:
        raise SerializationError(
            f"Embedding has {values.shape[0]} dimensions, expected {dimension}"
        )
    if not np.all(np.isfinite(values)):
        raise SerializationError("Embedding contains NaN or infinite values")

    return f"[{','.join(str(float(x)) for x in values)}]"


def decode_embedding(value: Any) -> list[float]:
    """Parse a pgvector string or list into a list of floats.

    Raises:
        SerializationError: If value is missing or malformed.
    """
    if value is None:
        raise SerializationError("Stored embedding is NULL")
    try:
        if isinstance(value, str):
            body = value.strip().removeprefix("[").removesuffix("]")
            if not body.strip():
                return []
            return [float(x) for x in body.split(",")]
        if isinstance(value, (list, tuple, np.ndarray)):
            return [float(x) for x in value]
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Malformed stored embedding: {value!r:.80}") from e
    raise SerializationError(f"Cannot parse embedding from {type(value).__name__}")


def encode_metadata(metadata: Mapping[str, Any] | None) -> str | None:
    """JSON-encode metadata for a JSONB column; None stays NULL."""
    if metadata is None:
        return None
    if not isinstance(metadata, Mapping):
        raise SerializationError(
            f"Metadata must be a mapping, got {type(metadata).__name__}"
        )
    try:
        return json.dumps(dict(metadata), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Metadata is not JSON-serializable: {e}") from e


def decode_metadata(value: Any) -> dict[str, Any]:
    """Parse a JSONB value; NULL becomes an empty dict."""
    if value is None:
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise SerializationError(f"Malformed stored metadata: {e}") from e
    if not isinstance(value, Mapping):
        raise SerializationError(
            f"Stored metadata must be a JSON object, got {type(value).__name__}"
        )
    return dict(value)


def row_to_record(row: Any) -> VectorRecord:
    """Convert an asyncpg Record to a VectorRecord.

    Handles pgvector string -> list, JSONB string -> dict, and the
    distance column that only similarity searches select.
    """
    distance = row.get("distance")
    return VectorRecord(
        id=row["id"],
        collection=row["collection_name"],
        embedding=decode_embedding(row["embedding"]),
        document=row["document"],
        metadata=decode_metadata(row.get("metadata")),
        distance=float(distance) if distance is not None else 0.0,
    )
