"""
Error taxonomy for the vector store.

Every public operation may fail with one of these. Driver exceptions are
translated once, inside Database, so callers never need to import asyncpg.
"""


class VectorStoreError(Exception):
    """Base class for all vector store errors."""


class StoreConnectionError(VectorStoreError):
    """The connection handle is unavailable, closed, or the network failed."""


class SchemaInitError(VectorStoreError):
    """
    Schema bootstrap failed.

    Only raised by SchemaInitializer.create_schema(). PgVectorStore.initialize()
    logs it and continues in degraded mode.
    """


class QueryError(VectorStoreError):
    """The server rejected a statement (syntax, missing relation, constraint)."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


class SerializationError(VectorStoreError, ValueError):
    """An embedding or metadata value could not be encoded or decoded."""
