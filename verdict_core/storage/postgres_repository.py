"""
PostgresRunRepository: evaluation runs in PostgreSQL.

Result payloads and tags are stored as JSONB; insertion_order comes from a
BIGSERIAL column so count-based retention stays stable when created_at
values tie.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

import psycopg
from loguru import logger

from verdict_core.domain.exceptions import StorageError
from verdict_core.infrastructure.postgres import get_db_connection

from .models import EvaluationRun, RunQuery

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS evaluation_runs (
    run_id UUID PRIMARY KEY,
    insertion_order BIGSERIAL UNIQUE,
    evaluator_name TEXT NOT NULL,
    configuration_name TEXT NOT NULL,
    span_id TEXT NOT NULL,
    tags JSONB NOT NULL DEFAULT '{}'::jsonb,
    result_data JSONB NOT NULL,
    field_results JSONB NOT NULL,
    overall_passed BOOLEAN NOT NULL,
    aggregate_score DOUBLE PRECISION,
    duration_ms DOUBLE PRECISION,
    created_at TIMESTAMPTZ NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_evaluation_runs_evaluator ON evaluation_runs (evaluator_name, configuration_name);
CREATE INDEX IF NOT EXISTS idx_evaluation_runs_created_at ON evaluation_runs (created_at DESC);
CREATE INDEX IF NOT EXISTS idx_evaluation_runs_tags ON evaluation_runs USING GIN (tags);
"""

_COLUMNS = """
    run_id, insertion_order, evaluator_name, configuration_name, span_id,
    tags, result_data, field_results, overall_passed, aggregate_score,
    duration_ms, created_at
"""


class PostgresRunRepository:
    """
    Repository for evaluation runs in PostgreSQL.

    Usage:
        repo = PostgresRunRepository()
        repo.ensure_schema()
        stored = repo.insert(run)
    """

    def __init__(self, dsn: str | None = None):
        self.dsn = dsn

    def ensure_schema(self) -> None:
        """Create the evaluation_runs table and indexes if missing."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(SCHEMA_SQL)
            conn.commit()
        logger.info("Ensured evaluation_runs schema")

    def insert(self, run: EvaluationRun) -> EvaluationRun:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO evaluation_runs (
                        run_id, evaluator_name, configuration_name, span_id,
                        tags, result_data, field_results, overall_passed,
                        aggregate_score, duration_ms, created_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING insertion_order
                    """,
                    (
                        run.run_id,
                        run.evaluator_name,
                        run.configuration_name,
                        run.span_id,
                        json.dumps(run.tags, default=str),
                        json.dumps(run.result_data, default=str),
                        json.dumps(run.field_results, default=str),
                        run.overall_passed,
                        run.aggregate_score,
                        run.duration_ms,
                        run.created_at,
                    ),
                )
                row = cursor.fetchone()
                conn.commit()
        except psycopg.Error as e:
            logger.error(f"Failed to insert evaluation run {run.run_id}: {e}")
            raise StorageError(f"Failed to insert evaluation run {run.run_id}") from e

        return run.model_copy(update={"insertion_order": row[0]})

    def find(self, query: RunQuery) -> list[EvaluationRun]:
        conditions: list[str] = []
        params: list[Any] = []

        if query.evaluator_name is not None:
            conditions.append("evaluator_name = %s")
            params.append(query.evaluator_name)
        if query.configuration_name is not None:
            conditions.append("configuration_name = %s")
            params.append(query.configuration_name)
        if query.span_id is not None:
            conditions.append("span_id = %s")
            params.append(query.span_id)
        if query.start_date is not None:
            conditions.append("created_at >= %s")
            params.append(query.start_date)
        if query.end_date is not None:
            conditions.append("created_at <= %s")
            params.append(query.end_date)
        if query.tags:
            conditions.append("tags @> %s::jsonb")
            params.append(json.dumps(query.tags, default=str))

        sql = f"SELECT {_COLUMNS} FROM evaluation_runs"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        if query.order_by == "insertion_order":
            sql += " ORDER BY insertion_order DESC"
        else:
            sql += " ORDER BY created_at DESC, insertion_order DESC"
        if query.limit is not None:
            sql += " LIMIT %s"
            params.append(query.limit)
        if query.offset:
            sql += " OFFSET %s"
            params.append(query.offset)

        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(sql, tuple(params))
                rows = cursor.fetchall()
        except psycopg.Error as e:
            logger.error(f"Failed to query evaluation runs: {e}")
            raise StorageError("Failed to query evaluation runs") from e

        return [self._row_to_run(row) for row in rows]

    def get(self, run_id: str) -> Optional[EvaluationRun]:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"SELECT {_COLUMNS} FROM evaluation_runs WHERE run_id = %s",
                    (run_id,),
                )
                row = cursor.fetchone()
        except psycopg.Error as e:
            logger.error(f"Failed to get evaluation run {run_id}: {e}")
            raise StorageError(f"Failed to get evaluation run {run_id}") from e

        return self._row_to_run(row) if row else None

    def delete(self, run_id: str) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM evaluation_runs WHERE run_id = %s", (run_id,))
                deleted = cursor.rowcount
                conn.commit()
        except psycopg.Error as e:
            logger.error(f"Failed to delete evaluation run {run_id}: {e}")
            raise StorageError(f"Failed to delete evaluation run {run_id}") from e

        logger.info(f"Deleted evaluation run {run_id}: {bool(deleted)}")
        return bool(deleted)

    def delete_where(
        self,
        created_before: Optional[datetime] = None,
        inserted_before: Optional[int] = None,
        evaluator_name: Optional[str] = None,
    ) -> int:
        conditions: list[str] = []
        params: list[Any] = []

        if created_before is not None:
            conditions.append("created_at < %s")
            params.append(created_before)
        if inserted_before is not None:
            conditions.append("insertion_order < %s")
            params.append(inserted_before)
        if evaluator_name is not None:
            conditions.append("evaluator_name = %s")
            params.append(evaluator_name)

        sql = "DELETE FROM evaluation_runs"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)

        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(sql, tuple(params))
                deleted = cursor.rowcount
                conn.commit()
        except psycopg.Error as e:
            logger.error(f"Failed to delete evaluation runs: {e}")
            raise StorageError("Failed to delete evaluation runs") from e

        return deleted

    def _connect(self):
        return get_db_connection(self.dsn)

    def _row_to_run(self, row: tuple) -> EvaluationRun:
        """Convert database row to EvaluationRun."""
        tags, result_data, field_results = (
            json.loads(value) if isinstance(value, str) else (value or {})
            for value in (row[5], row[6], row[7])
        )

        return EvaluationRun(
            run_id=str(row[0]),
            insertion_order=row[1],
            evaluator_name=row[2],
            configuration_name=row[3],
            span_id=row[4],
            tags=tags,
            result_data=result_data,
            field_results=field_results,
            overall_passed=row[8],
            aggregate_score=row[9],
            duration_ms=row[10],
            created_at=row[11],
        )


def get_run_repository() -> PostgresRunRepository:
    """Factory function for PostgresRunRepository."""
    return PostgresRunRepository()
