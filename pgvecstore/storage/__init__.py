"""Storage layer: connection management and schema bootstrap."""

from pgvecstore.storage.config import ConnectionConfig
from pgvecstore.storage.database import Database
from pgvecstore.storage.schema import SchemaInitializer

__all__ = ["ConnectionConfig", "Database", "SchemaInitializer"]
