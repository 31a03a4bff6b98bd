"""
Unit tests for PostgresRunRepository.

Tests the SQL issued for evaluation runs using mocked PostgreSQL.
"""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from verdict_core.domain.exceptions import StorageError
from verdict_core.storage.models import EvaluationRun, RunQuery
from verdict_core.storage.postgres_repository import PostgresRunRepository


class TestEnsureSchema:
    """Tests for schema creation."""

    def test_creates_table(self, mock_postgres):
        PostgresRunRepository().ensure_schema()

        query = mock_postgres["cursor"].execute.call_args[0][0]
        assert "CREATE TABLE IF NOT EXISTS evaluation_runs" in query
        mock_postgres["connection"].commit.assert_called_once()


class TestInsert:
    """Tests for inserting runs."""

    def test_insert_returns_insertion_order(self, mock_postgres, run):
        mock_postgres["cursor"].fetchone.return_value = (7,)

        stored = PostgresRunRepository().insert(run)

        assert stored.insertion_order == 7
        assert stored.run_id == run.run_id

    def test_insert_stores_jsonb(self, mock_postgres, run):
        mock_postgres["cursor"].fetchone.return_value = (1,)

        PostgresRunRepository().insert(run)

        query, params = mock_postgres["cursor"].execute.call_args[0]
        assert "INSERT INTO EVALUATION_RUNS" in query.upper()
        assert "RETURNING insertion_order" in query
        assert json.loads(params[4]) == {"env": "ci"}
        assert json.loads(params[5])["configuration"]["name"] == "gpt-4o"

    def test_database_error_becomes_storage_error(self, mock_postgres, run):
        mock_postgres["cursor"].execute.side_effect = psycopg.Error("connection lost")

        with pytest.raises(StorageError):
            PostgresRunRepository().insert(run)


class TestFind:
    """Tests for querying runs."""

    def test_builds_filtered_query(self, mock_postgres):
        mock_postgres["cursor"].fetchall.return_value = []
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)

        PostgresRunRepository().find(
            RunQuery(evaluator_name="quality_check", start_date=start, tags={"env": "ci"}, limit=5)
        )

        query, params = mock_postgres["cursor"].execute.call_args[0]
        assert "evaluator_name = %s" in query
        assert "created_at >= %s" in query
        assert "tags @> %s::jsonb" in query
        assert "ORDER BY created_at DESC, insertion_order DESC" in query
        assert "LIMIT %s" in query
        assert params == ("quality_check", start, '{"env": "ci"}', 5)

    def test_insertion_order_with_offset(self, mock_postgres):
        mock_postgres["cursor"].fetchall.return_value = []

        PostgresRunRepository().find(RunQuery(order_by="insertion_order", offset=99, limit=1))

        query, params = mock_postgres["cursor"].execute.call_args[0]
        assert "ORDER BY insertion_order DESC" in query
        assert "WHERE" not in query
        assert params == (1, 99)

    def test_rows_become_runs(self, mock_postgres, row):
        mock_postgres["cursor"].fetchall.return_value = [row]

        runs = PostgresRunRepository().find(RunQuery())

        assert len(runs) == 1
        assert runs[0].insertion_order == 3
        assert runs[0].tags == {"env": "ci"}
        assert runs[0].field_results == {"output": {"label": "good"}}

    def test_string_json_columns_are_decoded(self, mock_postgres, row):
        row = row[:5] + ('{"env": "ci"}',) + row[6:]
        mock_postgres["cursor"].fetchall.return_value = [row]

        assert PostgresRunRepository().find(RunQuery())[0].tags == {"env": "ci"}


class TestGetAndDelete:
    """Tests for single-run access."""

    def test_get_found(self, mock_postgres, row):
        mock_postgres["cursor"].fetchone.return_value = row

        run = PostgresRunRepository().get("5f0c3b9e-1111-2222-3333-444455556666")

        assert run.evaluator_name == "quality_check"

    def test_get_not_found(self, mock_postgres):
        mock_postgres["cursor"].fetchone.return_value = None

        assert PostgresRunRepository().get("missing") is None

    def test_delete(self, mock_postgres):
        mock_postgres["cursor"].rowcount = 1

        assert PostgresRunRepository().delete("run-1") is True
        mock_postgres["connection"].commit.assert_called_once()

    def test_delete_where(self, mock_postgres):
        mock_postgres["cursor"].rowcount = 4
        cutoff = datetime(2026, 1, 1, tzinfo=timezone.utc)

        deleted = PostgresRunRepository().delete_where(created_before=cutoff, inserted_before=51)

        query, params = mock_postgres["cursor"].execute.call_args[0]
        assert deleted == 4
        assert "created_at < %s AND insertion_order < %s" in query
        assert params == (cutoff, 51)

    def test_get_database_error_becomes_storage_error(self, mock_postgres):
        mock_postgres["cursor"].execute.side_effect = psycopg.Error("connection lost")

        with pytest.raises(StorageError):
            PostgresRunRepository().get("run-1")

    def test_delete_database_error_becomes_storage_error(self, mock_postgres):
        mock_postgres["cursor"].execute.side_effect = psycopg.Error("connection lost")

        with pytest.raises(StorageError):
            PostgresRunRepository().delete("run-1")
        mock_postgres["connection"].commit.assert_not_called()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_postgres():
    """Provides mock PostgreSQL connection and cursor."""
    with patch("verdict_core.storage.postgres_repository.get_db_connection") as mock_get_conn:
        mock_conn = MagicMock()
        mock_cursor = MagicMock()

        mock_conn.cursor.return_value = mock_cursor
        mock_conn.__enter__ = MagicMock(return_value=mock_conn)
        mock_conn.__exit__ = MagicMock(return_value=False)

        mock_get_conn.return_value = mock_conn

        yield {
            "connection": mock_conn,
            "cursor": mock_cursor,
        }


@pytest.fixture
def run():
    return EvaluationRun(
        evaluator_name="quality_check",
        configuration_name="gpt-4o",
        span_id="span-1",
        tags={"env": "ci"},
        result_data={"field_results": {}, "configuration": {"name": "gpt-4o", "params": {}}, "metadata": {}},
        overall_passed=True,
        aggregate_score=0.9,
    )


@pytest.fixture
def row():
    return (
        "5f0c3b9e-1111-2222-3333-444455556666",
        3,
        "quality_check",
        "gpt-4o",
        "span-1",
        {"env": "ci"},
        {"field_results": {"output": {"label": "good"}}},
        {"output": {"label": "good"}},
        True,
        0.9,
        12.5,
        datetime(2026, 1, 15, tzinfo=timezone.utc),
    )
