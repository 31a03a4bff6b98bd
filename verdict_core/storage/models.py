"""
Domain models for evaluation history.

- HistoryConfig: per-definition persistence and retention settings
- EvaluationRun: one persisted evaluation result
- RunQuery: repository-level filter used by QueryBuilder and RetentionPolicy
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from verdict_core.config import settings

if TYPE_CHECKING:
    from verdict_core.evals.result import EvaluationResult


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are read as UTC; aware ones are converted to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class HistoryConfig(BaseModel):
    """
    How evaluation results of a definition are kept.

    `cleanup` decides when retention runs: "eager" after every save,
    "manual" only through HistoricalStorage.cleanup_retention().
    """

    auto_save: bool = False
    retention_days: Optional[int] = Field(None, ge=0, description="Keep runs at most this many days old")
    retention_count: Optional[int] = Field(None, ge=0, description="Keep this many most recent runs")
    tags: dict[str, Any] = Field(default_factory=dict)
    cleanup: Literal["eager", "manual"] = Field(
        default_factory=lambda: settings.HISTORY_CLEANUP_MODE
    )

    model_config = {"frozen": True}

    @property
    def has_retention(self) -> bool:
        return self.retention_days is not None or self.retention_count is not None


class EvaluationRun(BaseModel):
    """
    A persisted evaluation result.

    `insertion_order` is assigned by the repository from a monotonically
    increasing sequence and orders runs independently of `created_at`.
    """

    run_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    evaluator_name: str
    configuration_name: str
    span_id: str = "unknown"
    tags: dict[str, Any] = Field(default_factory=dict)
    result_data: dict[str, Any] = Field(default_factory=dict, description="EvaluationResult.to_dict()")
    field_results: dict[str, Any] = Field(default_factory=dict)
    overall_passed: bool
    aggregate_score: Optional[float] = None
    duration_ms: Optional[float] = None
    created_at: datetime = Field(default_factory=utc_now)
    insertion_order: Optional[int] = None

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    def to_result(self) -> "EvaluationResult":
        """Rebuild the EvaluationResult this run was saved from."""
        from verdict_core.evals.result import EvaluationResult

        return EvaluationResult.from_dict(self.result_data)


class RunQuery(BaseModel):
    """Filters understood by every RunRepository."""

    evaluator_name: Optional[str] = None
    configuration_name: Optional[str] = None
    span_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    tags: dict[str, Any] = Field(default_factory=dict)
    order_by: Literal["created_at", "insertion_order"] = "created_at"
    limit: Optional[int] = Field(None, ge=0)
    offset: int = Field(0, ge=0)

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    def matches(self, run: EvaluationRun) -> bool:
        if self.evaluator_name is not None and run.evaluator_name != self.evaluator_name:
            return False
        if self.configuration_name is not None and run.configuration_name != self.configuration_name:
            return False
        if self.span_id is not None and run.span_id != self.span_id:
            return False
        if self.start_date is not None and run.created_at < self.start_date:
            return False
        if self.end_date is not None and run.created_at > self.end_date:
            return False
        for key, value in self.tags.items():
            if key not in run.tags or run.tags[key] != value:
                return False
        return True
