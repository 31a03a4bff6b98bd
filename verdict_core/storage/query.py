"""
Fluent query builder over a RunRepository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from .models import EvaluationRun, RunQuery, as_utc
from .repository import RunRepository


class QueryBuilder:
    """
    Build a RunQuery step by step and execute it.

    Results are always ordered by created_at descending.

    Usage:
        runs = (
            QueryBuilder(repository)
            .evaluator_name("quality_check")
            .tags(env="staging", model="gpt-4o")
            .between(start, end)
            .all()
        )
    """

    def __init__(self, repository: RunRepository, query: Optional[RunQuery] = None):
        self._repository = repository
        self._query = query or RunQuery()

    @property
    def query(self) -> RunQuery:
        return self._query

    def _with(self, **changes: Any) -> "QueryBuilder":
        return QueryBuilder(self._repository, self._query.model_copy(update=changes))

    def evaluator_name(self, name: str) -> "QueryBuilder":
        return self._with(evaluator_name=str(name))

    def configuration_name(self, name: str) -> "QueryBuilder":
        return self._with(configuration_name=str(name))

    def span_id(self, span_id: str) -> "QueryBuilder":
        return self._with(span_id=str(span_id))

    def between(self, start_date: Optional[datetime], end_date: Optional[datetime]) -> "QueryBuilder":
        """Inclusive created_at range; either end may be None. Naive bounds are UTC."""
        return self._with(start_date=as_utc(start_date), end_date=as_utc(end_date))

    def tags(self, **tags: Any) -> "QueryBuilder":
        """Require every given tag (AND across keys)."""
        return self._with(tags={**self._query.tags, **tags})

    def limit(self, limit: int) -> "QueryBuilder":
        return self._with(limit=limit)

    def all(self) -> list[EvaluationRun]:
        return self._repository.find(self._query.model_copy(update={"order_by": "created_at"}))

    def first(self) -> Optional[EvaluationRun]:
        runs = self._repository.find(
            self._query.model_copy(update={"order_by": "created_at", "limit": 1})
        )
        return runs[0] if runs else None

    def count(self) -> int:
        return len(self.all())
