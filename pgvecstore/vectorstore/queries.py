"""
Parameterized statements against the vector_store table.

Each builder returns a Query: static SQL skeleton plus clause fragments
from pgvecstore.vectorstore.clauses, and the values to bind, in
placeholder order. Only fixed identifiers and metric operators are ever
placed in the SQL text; every caller-supplied value is a parameter.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pgvecstore.storage.schema import TABLE_NAME
from pgvecstore.vectorstore.base import SearchConfig
from pgvecstore.vectorstore.clauses import (
    build_clauses,
    clause_params,
    collection_clause,
    where_sql,
)

RECORD_COLUMNS = "id, collection_name, embedding, document, metadata"


@dataclass(frozen=True)
class Query:
    """SQL text and its bound parameters."""

    sql: str
    params: tuple[Any, ...] = ()


def insert_query(
    collection: str,
    embedding: str,
    document: str,
    metadata: str | None,
) -> Query:
    """
    INSERT one record and return the stored row.

    Args:
        collection: Collection name
        embedding: pgvector literal from encode_embedding()
        document: Source text
        metadata: JSON text from encode_metadata(), or None for NULL
    """
    sql = f"""
        INSERT INTO {TABLE_NAME} (collection_name, embedding, document, metadata)
        VALUES ($1, $2, $3, $4)
        RETURNING {RECORD_COLUMNS}
    """
    return Query(sql, (collection, embedding, document, metadata))


def search_query(collection: str, embedding: str, config: SearchConfig) -> Query:
    """
    Rank a collection by distance to a query vector.

    The inner CTE scores every row of the collection; threshold and metadata
    filters apply to the scored rows, which are returned closest first.

    Args:
        collection: Collection name
        embedding: pgvector literal of the query vector
        config: Metric, limit, threshold, and metadata filter
    """
    operator = config.metric.operator
    scope = collection_clause(collection, 2)
    outer = build_clauses(
        metadata_filter=config.metadata_filter,
        threshold=config.threshold,
        start=3,
    )
    limit_index = 3 + len(outer)

    sql = f"""
        WITH scored AS (
            SELECT
                {RECORD_COLUMNS},
                embedding {operator} $1::vector AS distance
            FROM {TABLE_NAME}
            WHERE {scope.fragment}
        )
        SELECT {RECORD_COLUMNS}, distance
        FROM scored
        {where_sql(outer)}
        ORDER BY distance ASC
        LIMIT ${limit_index}
    """
    params = (embedding, scope.value, *clause_params(outer), config.limit)
    return Query(sql, params)


def select_query(metadata_filter: Mapping[str, Any] | None, collection: str) -> Query:
    """Every record of a collection matching the metadata filter."""
    clauses = build_clauses(metadata_filter, collection=collection)
    sql = f"""
        SELECT {RECORD_COLUMNS}
        FROM {TABLE_NAME}
        {where_sql(clauses)}
    """
    return Query(sql, tuple(clause_params(clauses)))


def exists_query(metadata_filter: Mapping[str, Any] | None, collection: str) -> Query:
    """A single boolean: does any record match?"""
    clauses = build_clauses(metadata_filter, collection=collection)
    sql = f"""
        SELECT EXISTS (
            SELECT 1
            FROM {TABLE_NAME}
            {where_sql(clauses)}
        )
    """
    return Query(sql, tuple(clause_params(clauses)))


def count_query(metadata_filter: Mapping[str, Any] | None, collection: str) -> Query:
    """Number of records matching the metadata filter."""
    clauses = build_clauses(metadata_filter, collection=collection)
    sql = f"""
        SELECT COUNT(*)
        FROM {TABLE_NAME}
        {where_sql(clauses)}
    """
    return Query(sql, tuple(clause_params(clauses)))


def delete_query(metadata_filter: Mapping[str, Any] | None, collection: str) -> Query:
    """DELETE matching records, returning one id per removed row."""
    clauses = build_clauses(metadata_filter, collection=collection)
    sql = f"""
        DELETE FROM {TABLE_NAME}
        {where_sql(clauses)}
        RETURNING id
    """
    return Query(sql, tuple(clause_params(clauses)))


def update_metadata_query(record_id: int, patch: str) -> Query:
    """
    Merge a JSON object into one record's metadata.

    Keys in patch overwrite existing keys; all other keys are kept. NULL
    metadata is treated as {}.

    Args:
        record_id: Row to update
        patch: JSON text of the object to merge
    """
    sql = f"""
        UPDATE {TABLE_NAME}
        SET metadata = COALESCE(metadata, '{{}}'::jsonb) || $2::jsonb,
            updated_at = NOW()
        WHERE id = $1
        RETURNING {RECORD_COLUMNS}
    """
    return Query(sql, (record_id, patch))


def collection_stats_query() -> Query:
    """Record count per collection."""
    sql = f"""
        SELECT collection_name, COUNT(*) AS record_count
        FROM {TABLE_NAME}
        GROUP BY collection_name
        ORDER BY collection_name
    """
    return Query(sql)
