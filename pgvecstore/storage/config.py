"""
Connection configuration for the backing PostgreSQL database.

Uses Pydantic BaseSettings for environment variable support.
"""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectionConfig(BaseSettings):
    """
    Connection settings owned by Database.

    All settings can be overridden via environment variables with
    PGVECTOR_ prefix (e.g., PGVECTOR_HOST=db.internal). Instances are
    frozen: a Database never sees its configuration change.

    Option          Default     Effect
    host            localhost   server host
    user            postgres    login role
    password        ""          login password
    database        postgres    database name
    port            5432        server port
    ssl             require     TLS mode handed to asyncpg
    connect_timeout 10.0        seconds to wait for a new connection
    command_timeout 60.0        seconds a single statement may run
    pool_min_size   1           connections opened eagerly
    pool_max_size   10          upper bound on pooled connections
    """

    host: str = "localhost"
    user: str = "postgres"
    password: SecretStr = SecretStr("")
    database: str = "postgres"
    port: int = Field(default=5432, ge=1, le=65535)

    # Connection-layer options
    ssl: Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"] = "require"
    connect_timeout: float = Field(default=10.0, gt=0)
    command_timeout: float = Field(default=60.0, gt=0)
    pool_min_size: int = Field(default=1, ge=0)
    pool_max_size: int = Field(default=10, ge=1)

    model_config = SettingsConfigDict(env_prefix="PGVECTOR_", frozen=True)

    def connect_kwargs(self) -> dict:
        """Keyword arguments for asyncpg.create_pool()."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password.get_secret_value() or None,
            "database": self.database,
            "ssl": self.ssl,
            "timeout": self.connect_timeout,
            "command_timeout": self.command_timeout,
            "min_size": self.pool_min_size,
            "max_size": self.pool_max_size,
        }
