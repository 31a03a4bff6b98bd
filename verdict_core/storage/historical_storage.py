"""
HistoricalStorage: persistence and querying of evaluation results.

This service handles:
- Saving EvaluationResults as EvaluationRun records
- Filtered queries (evaluator, configuration, date range, tags)
- Retention cleanup, eagerly after each save or on demand
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger

from verdict_core.config import settings

from .models import EvaluationRun, HistoryConfig
from .query import QueryBuilder
from .repository import InMemoryRunRepository, RunRepository
from .retention import RetentionPolicy

if TYPE_CHECKING:
    from verdict_core.evals.result import EvaluationResult


class HistoricalStorage:
    """
    Service for keeping evaluation runs.

    Usage:
        storage = HistoricalStorage()
        run = storage.save(
            evaluator_name="quality_check",
            configuration_name="gpt-4o",
            span_id="span-123",
            result=result,
            history=HistoryConfig(retention_days=30, retention_count=100),
        )
        runs = storage.query(evaluator_name="quality_check", tags={"env": "ci"})
    """

    def __init__(self, repository: Optional[RunRepository] = None):
        self.repository = repository if repository is not None else InMemoryRunRepository()

    def save(
        self,
        *,
        evaluator_name: str,
        configuration_name: str,
        result: "EvaluationResult",
        span_id: str = "unknown",
        tags: Optional[dict[str, Any]] = None,
        duration_ms: Optional[float] = None,
        history: Optional[HistoryConfig] = None,
    ) -> EvaluationRun:
        """
        Persist an evaluation result.

        When `history` configures retention with eager cleanup, retention
        runs right after the insert.

        Args:
            evaluator_name: Name of the definition that produced the result.
            configuration_name: Configuration the result belongs to.
            result: The EvaluationResult to store.
            span_id: Identifier of the evaluated span.
            tags: Free-form tags for later filtering.
            duration_ms: Evaluation duration.
            history: Retention settings for this definition.

        Returns:
            EvaluationRun: The stored run with insertion_order set.
        """
        if duration_ms is None:
            duration_ms = result.metadata.get("duration_ms")

        run = EvaluationRun(
            evaluator_name=str(evaluator_name),
            configuration_name=str(configuration_name),
            span_id=str(span_id),
            tags=dict(tags or {}),
            result_data=result.to_dict(),
            field_results=result.to_dict()["field_results"],
            overall_passed=result.passed,
            aggregate_score=result.average_score,
            duration_ms=duration_ms,
        )
        stored = self.repository.insert(run)
        logger.info(
            f"Saved evaluation run {stored.run_id} for {stored.evaluator_name}/"
            f"{stored.configuration_name} (passed={stored.overall_passed})"
        )

        if history is not None and history.has_retention and history.cleanup == "eager":
            self.cleanup_retention(
                retention_days=history.retention_days,
                retention_count=history.retention_count,
            )

        return stored

    def query_builder(self) -> QueryBuilder:
        return QueryBuilder(self.repository)

    def query(
        self,
        evaluator_name: Optional[str] = None,
        configuration_name: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        tags: Optional[dict[str, Any]] = None,
        span_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[EvaluationRun]:
        """Filtered runs, newest created_at first."""
        builder = self.query_builder()
        if evaluator_name is not None:
            builder = builder.evaluator_name(evaluator_name)
        if configuration_name is not None:
            builder = builder.configuration_name(configuration_name)
        if span_id is not None:
            builder = builder.span_id(span_id)
        if start_date is not None or end_date is not None:
            builder = builder.between(start_date, end_date)
        if tags:
            builder = builder.tags(**tags)
        if limit is not None:
            builder = builder.limit(limit)
        return builder.all()

    def latest(
        self, evaluator_name: str, configuration_name: Optional[str] = None
    ) -> Optional[EvaluationRun]:
        builder = self.query_builder().evaluator_name(evaluator_name)
        if configuration_name is not None:
            builder = builder.configuration_name(configuration_name)
        return builder.first()

    def get(self, run_id: str) -> Optional[EvaluationRun]:
        return self.repository.get(run_id)

    def delete(self, run_id: str) -> bool:
        return self.repository.delete(run_id)

    def cleanup_retention(
        self,
        retention_days: Optional[int] = None,
        retention_count: Optional[int] = None,
        evaluator_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Apply a RetentionPolicy to the repository. Returns the number deleted."""
        policy = RetentionPolicy(retention_days=retention_days, retention_count=retention_count)
        return policy.cleanup(self.repository, now=now, evaluator_name=evaluator_name)


_storage: Optional[HistoricalStorage] = None


def get_historical_storage() -> HistoricalStorage:
    """Shared HistoricalStorage backed by settings.HISTORY_BACKEND."""
    global _storage
    if _storage is None:
        if settings.HISTORY_BACKEND == "postgres":
            from .postgres_repository import PostgresRunRepository

            _storage = HistoricalStorage(PostgresRunRepository())
        else:
            _storage = HistoricalStorage()
        logger.info(f"Historical storage initialized (backend={settings.HISTORY_BACKEND})")
    return _storage


def reset_historical_storage() -> None:
    global _storage
    _storage = None
