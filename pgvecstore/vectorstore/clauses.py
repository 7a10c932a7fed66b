"""
WHERE-clause fragments for vector_store queries.

Each clause pairs a SQL fragment with the single value it binds. Clauses
are built into tuples with a fold, never by mutating a shared builder, and
placeholder numbers continue from a caller-supplied start index so the
fragments slot into statements that bind other parameters first.

Filter values and keys are always bound: a metadata filter {"cat": "a"}
becomes ``metadata @> $n::jsonb`` with ``'{"cat": "a"}'`` as the value.
"""

import json
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import reduce
from typing import Any

from pgvecstore.exceptions import SerializationError


@dataclass(frozen=True)
class Clause:
    """A SQL predicate and the value bound to its placeholder."""

    fragment: str
    value: Any


def collection_clause(collection: str, index: int) -> Clause:
    """Restrict rows to one collection."""
    return Clause(f"collection_name = ${index}", collection)


def threshold_clause(threshold: float, index: int) -> Clause:
    """Keep rows whose computed distance is at most threshold."""
    if not math.isfinite(threshold):
        raise ValueError(f"threshold must be finite, got {threshold!r}")
    return Clause(f"distance <= ${index}", float(threshold))


def metadata_clauses(
    metadata_filter: Mapping[str, Any] | None,
    start: int,
) -> tuple[Clause, ...]:
    """
    One containment clause per filter entry, in mapping order.

    Entries whose value is the empty string mean "no filter" and are
    skipped, so {"cat": ""} behaves exactly like {}.

    Args:
        metadata_filter: Key -> required value (AND logic)
        start: Placeholder number for the first clause

    Returns:
        Tuple of clauses numbered start, start + 1, ...
    """

    def add(clauses: tuple[Clause, ...], item: tuple[str, Any]) -> tuple[Clause, ...]:
        key, value = item
        if isinstance(value, str) and value == "":
            return clauses
        index = start + len(clauses)
        return clauses + (
            Clause(f"metadata @> ${index}::jsonb", _containment_document(key, value)),
        )

    return reduce(add, (metadata_filter or {}).items(), ())


def build_clauses(
    metadata_filter: Mapping[str, Any] | None = None,
    collection: str | None = None,
    threshold: float | None = None,
    start: int = 1,
) -> tuple[Clause, ...]:
    """
    Compose the full predicate list: collection, then threshold, then metadata.

    Args:
        metadata_filter: Equality filters on metadata keys
        collection: Optional collection constraint
        threshold: Optional maximum distance
        start: Placeholder number for the first clause

    Returns:
        Ordered tuple of clauses with consecutive placeholders
    """
    leading: tuple[Clause, ...] = ()
    if collection is not None:
        leading += (collection_clause(collection, start + len(leading)),)
    if threshold is not None:
        leading += (threshold_clause(threshold, start + len(leading)),)
    return leading + metadata_clauses(metadata_filter, start + len(leading))


def where_sql(clauses: Iterable[Clause]) -> str:
    """Render clauses as a WHERE clause, or "" when there are none."""
    fragments = [clause.fragment for clause in clauses]
    if not fragments:
        return ""
    return "WHERE " + " AND ".join(fragments)


def clause_params(clauses: Iterable[Clause]) -> list[Any]:
    """Bound values in placeholder order."""
    return [clause.value for clause in clauses]


def _containment_document(key: str, value: Any) -> str:
    if not isinstance(key, str):
        raise SerializationError(f"Metadata filter keys must be strings, got {key!r}")
    try:
        return json.dumps({key: value}, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Metadata filter value for {key!r} is not JSON-serializable: {e}"
        ) from e
