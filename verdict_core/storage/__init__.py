"""
Evaluation history.

- HistoricalStorage: save, query and clean up evaluation runs
- QueryBuilder: fluent run filters
- RetentionPolicy: dual (age, count) retention
- Repositories: in-memory and PostgreSQL
"""

from .historical_storage import HistoricalStorage, get_historical_storage, reset_historical_storage
from .models import EvaluationRun, HistoryConfig, RunQuery
from .query import QueryBuilder
from .repository import InMemoryRunRepository, RunRepository
from .retention import RetentionPolicy

__all__ = [
    "EvaluationRun",
    "HistoricalStorage",
    "HistoryConfig",
    "InMemoryRunRepository",
    "QueryBuilder",
    "RetentionPolicy",
    "RunQuery",
    "RunRepository",
    "get_historical_storage",
    "reset_historical_storage",
]
