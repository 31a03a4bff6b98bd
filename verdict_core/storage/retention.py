"""
Dual retention policy for evaluation runs.

A run is kept if it is at most `retention_days` old OR it is among the
`retention_count` most recently inserted runs. It is deleted only when it
fails both tests. An unset limit never keeps anything; with both unset
cleanup does nothing.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger

from verdict_core.domain.exceptions import InvalidRetentionPolicyError

from .models import RunQuery, as_utc
from .repository import RunRepository


class RetentionPolicy:
    """
    Usage:
        policy = RetentionPolicy(retention_days=30, retention_count=100)
        deleted = policy.cleanup(repository)
    """

    def __init__(self, retention_days: Optional[int] = None, retention_count: Optional[int] = None):
        if retention_days is not None and retention_days < 0:
            raise InvalidRetentionPolicyError(f"retention_days must be >= 0, got {retention_days}")
        if retention_count is not None and retention_count < 0:
            raise InvalidRetentionPolicyError(f"retention_count must be >= 0, got {retention_count}")
        self.retention_days = retention_days
        self.retention_count = retention_count

    @property
    def enabled(self) -> bool:
        return self.retention_days is not None or self.retention_count is not None

    def age_cutoff(self, now: Optional[datetime] = None) -> Optional[datetime]:
        """Runs created before this instant are older than retention_days."""
        if self.retention_days is None:
            return None
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        return now - timedelta(days=self.retention_days)

    def count_cutoff(
        self, repository: RunRepository, evaluator_name: Optional[str] = None
    ) -> Optional[int]:
        """
        insertion_order of the oldest run still inside the count window.

        Runs with a lower insertion_order rank beyond retention_count.
        Returns None when there is no positive count limit or when fewer
        runs than retention_count exist.
        """
        if not self.retention_count:
            return None

        boundary = repository.find(
            RunQuery(
                evaluator_name=evaluator_name,
                order_by="insertion_order",
                offset=self.retention_count - 1,
                limit=1,
            )
        )
        if not boundary:
            return None
        return boundary[0].insertion_order

    def cleanup(
        self,
        repository: RunRepository,
        now: Optional[datetime] = None,
        evaluator_name: Optional[str] = None,
    ) -> int:
        """
        Delete runs that fail both retention tests.

        Args:
            repository: Where the runs live.
            now: Reference time for age (defaults to current UTC time).
            evaluator_name: Restrict ranking and deletion to one evaluator.

        Returns:
            Number of deleted runs.
        """
        if not self.enabled:
            return 0

        # retention_count == 0 leaves an empty window: no run is kept by count
        inserted_before = None
        if self.retention_count:
            inserted_before = self.count_cutoff(repository, evaluator_name)
            if inserted_before is None:
                return 0

        deleted = repository.delete_where(
            created_before=self.age_cutoff(now),
            inserted_before=inserted_before,
            evaluator_name=evaluator_name,
        )

        logger.info(
            f"Retention cleanup complete: deleted={deleted}, "
            f"retention_days={self.retention_days}, retention_count={self.retention_count}"
        )
        return deleted
