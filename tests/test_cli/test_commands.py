"""Tests for the pgvecstore command-line interface."""

from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from pgvecstore.cli import SSL_MODES, build_connection_config, main
from pgvecstore.exceptions import SchemaInitError, StoreConnectionError


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_cls(mock_database):
    """Patch Database in the CLI so `async with Database(...)` yields the mock."""
    mock_database.__aenter__ = AsyncMock(return_value=mock_database)
    mock_database.__aexit__ = AsyncMock(return_value=False)
    with patch("pgvecstore.cli.Database", return_value=mock_database) as cls:
        yield cls


class TestBuildConnectionConfig:
    def test_only_given_options_override(self, monkeypatch):
        monkeypatch.setenv("PGVECTOR_HOST", "from-env")

        config = build_connection_config(host=None, port=6000, user=None)

        assert config.host == "from-env"
        assert config.port == 6000

    def test_ssl_choices_match_connection_config(self):
        assert SSL_MODES == ["disable", "allow", "prefer", "require", "verify-ca", "verify-full"]

    def test_ssl_allow_accepted(self, runner, db_cls):
        result = runner.invoke(main, ["health", "--ssl", "allow"])

        assert result.exit_code == 0, result.output
        assert db_cls.call_args.args[0].ssl == "allow"


class TestInitSchemaCommand:
    """Tests for `pgvecstore init-schema`."""

    def test_success(self, runner, db_cls, mock_database):
        result = runner.invoke(main, ["init-schema", "--dimension", "3", "--host", "db"])

        assert result.exit_code == 0, result.output
        assert "Schema initialized (dimension=3)" in result.output
        assert db_cls.call_args.args[0].host == "db"
        assert mock_database.execute.await_count == 5

    def test_failure_exits_non_zero(self, runner, db_cls):
        with patch(
            "pgvecstore.cli.SchemaInitializer.create_schema",
            AsyncMock(side_effect=SchemaInitError("permission denied")),
        ):
            result = runner.invoke(main, ["init-schema", "--dimension", "3"])

        assert result.exit_code == 1
        assert "permission denied" in result.output


class TestHealthCommand:
    """Tests for `pgvecstore health`."""

    def test_healthy(self, runner, db_cls):
        result = runner.invoke(main, ["health"])

        assert result.exit_code == 0
        assert "postgres: OK" in result.output

    def test_unreachable(self, runner, db_cls, mock_database):
        mock_database.__aenter__ = AsyncMock(side_effect=StoreConnectionError("refused"))

        result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert "postgres: FAIL" in result.output


class TestStatsCommand:
    """Tests for `pgvecstore stats`."""

    def test_lists_collections(self, runner, db_cls, mock_database):
        mock_database.fetch = AsyncMock(return_value=[
            {"collection_name": "docs", "record_count": 3},
            {"collection_name": "notes", "record_count": 2},
        ])

        result = runner.invoke(main, ["stats"])

        assert result.exit_code == 0
        assert "docs   3" in result.output
        assert "total  5" in result.output

    def test_empty(self, runner, db_cls):
        result = runner.invoke(main, ["stats"])

        assert result.exit_code == 0
        assert "No collections" in result.output
