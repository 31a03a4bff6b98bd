"""
Run repository protocol and in-memory implementation.

A repository is the persistence medium behind HistoricalStorage: it
inserts runs (assigning insertion_order), finds them by RunQuery and
deletes them by id or by retention filter.
"""

from __future__ import annotations

import itertools
import threading
from datetime import datetime
from typing import Iterable, Optional, Protocol, runtime_checkable

from loguru import logger

from .models import EvaluationRun, RunQuery, as_utc


@runtime_checkable
class RunRepository(Protocol):
    """Storage interface for evaluation runs."""

    def insert(self, run: EvaluationRun) -> EvaluationRun:
        """Persist a run and return it with insertion_order set."""
        ...

    def find(self, query: RunQuery) -> list[EvaluationRun]:
        """Return runs matching the query, ordered as it requests."""
        ...

    def get(self, run_id: str) -> Optional[EvaluationRun]:
        """Return a run by id."""
        ...

    def delete(self, run_id: str) -> bool:
        """Delete a run by id. Returns whether it existed."""
        ...

    def delete_where(
        self,
        created_before: Optional[datetime] = None,
        inserted_before: Optional[int] = None,
        evaluator_name: Optional[str] = None,
    ) -> int:
        """
        Delete runs matching every given condition.

        Args:
            created_before: created_at strictly earlier than this.
            inserted_before: insertion_order strictly lower than this.
            evaluator_name: Only runs of this evaluator.

        Returns:
            Number of deleted runs.
        """
        ...


def sort_runs(runs: Iterable[EvaluationRun], order_by: str) -> list[EvaluationRun]:
    """Newest first by created_at (insertion_order breaks ties) or by insertion_order."""
    if order_by == "insertion_order":
        return sorted(runs, key=lambda run: run.insertion_order or 0, reverse=True)
    return sorted(
        runs,
        key=lambda run: (run.created_at, run.insertion_order or 0),
        reverse=True,
    )


class InMemoryRunRepository:
    """
    In-memory run storage for testing and single-process use.

    Note: Does not persist across restarts.
    """

    def __init__(self):
        self._runs: dict[str, EvaluationRun] = {}
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, run: EvaluationRun) -> EvaluationRun:
        with self._lock:
            stored = run.model_copy(update={"insertion_order": next(self._sequence)})
            self._runs[stored.run_id] = stored
        return stored

    def find(self, query: RunQuery) -> list[EvaluationRun]:
        with self._lock:
            matching = [run for run in self._runs.values() if query.matches(run)]

        ordered = sort_runs(matching, query.order_by)[query.offset:]
        if query.limit is not None:
            ordered = ordered[: query.limit]
        return ordered

    def get(self, run_id: str) -> Optional[EvaluationRun]:
        return self._runs.get(run_id)

    def delete(self, run_id: str) -> bool:
        with self._lock:
            return self._runs.pop(run_id, None) is not None

    def delete_where(
        self,
        created_before: Optional[datetime] = None,
        inserted_before: Optional[int] = None,
        evaluator_name: Optional[str] = None,
    ) -> int:
        created_before = as_utc(created_before)
        with self._lock:
            doomed = [
                run_id
                for run_id, run in self._runs.items()
                if (created_before is None or run.created_at < created_before)
                and (inserted_before is None or (run.insertion_order or 0) < inserted_before)
                and (evaluator_name is None or run.evaluator_name == evaluator_name)
            ]
            for run_id in doomed:
                del self._runs[run_id]

        if doomed:
            logger.debug(f"Deleted {len(doomed)} runs from memory")
        return len(doomed)

    def __len__(self) -> int:
        return len(self._runs)

    def clear(self) -> None:
        with self._lock:
            self._runs.clear()
