"""Unit tests for HistoricalStorage."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from verdict_core.evals.result import EvaluationResult
from verdict_core.storage.historical_storage import (
    HistoricalStorage,
    get_historical_storage,
    reset_historical_storage,
)
from verdict_core.storage.models import HistoryConfig
from verdict_core.storage.repository import InMemoryRunRepository


class TestSave:
    """Tests for saving results."""

    def test_save_builds_run(self, storage, result):
        run = storage.save(
            evaluator_name="quality_check",
            configuration_name="gpt-4o",
            span_id="span-1",
            result=result,
            tags={"env": "ci"},
        )

        assert run.insertion_order == 1
        assert run.overall_passed is False
        assert run.aggregate_score == pytest.approx(0.6)
        assert run.duration_ms == 12.5
        assert run.field_results["output"]["label"] == "good"
        assert run.to_result() == result

    def test_eager_cleanup_after_save(self, storage, result):
        history = HistoryConfig(auto_save=True, retention_count=2, cleanup="eager")

        for _ in range(3):
            storage.save(evaluator_name="e", configuration_name="c", result=result, history=history)

        assert len(storage.query()) == 2

    def test_manual_cleanup_waits(self, storage, result):
        history = HistoryConfig(auto_save=True, retention_count=2, cleanup="manual")

        for _ in range(3):
            storage.save(evaluator_name="e", configuration_name="c", result=result, history=history)

        assert len(storage.query()) == 3
        assert storage.cleanup_retention(retention_count=2) == 1
        assert len(storage.query()) == 2

    def test_cleanup_with_reference_time(self, storage, result):
        storage.save(evaluator_name="e", configuration_name="c", result=result)

        future = datetime.now(timezone.utc) + timedelta(days=40)

        assert storage.cleanup_retention(retention_days=30, now=future) == 1


class TestQuery:
    """Tests for querying runs."""

    def test_query_filters(self, storage, result):
        storage.save(evaluator_name="a", configuration_name="gpt-4o", result=result, tags={"env": "ci"})
        storage.save(evaluator_name="a", configuration_name="claude", result=result, tags={"env": "prod"})
        storage.save(evaluator_name="b", configuration_name="gpt-4o", result=result, tags={"env": "ci"})

        assert len(storage.query(evaluator_name="a")) == 2
        assert len(storage.query(tags={"env": "ci"})) == 2
        assert len(storage.query(evaluator_name="a", configuration_name="claude")) == 1
        assert len(storage.query(limit=1)) == 1

    def test_latest(self, storage, result):
        storage.save(evaluator_name="a", configuration_name="c", span_id="first", result=result)
        storage.save(evaluator_name="a", configuration_name="c", span_id="second", result=result)

        assert storage.latest("a").span_id == "second"
        assert storage.latest("missing") is None

    def test_get_and_delete(self, storage, result):
        run = storage.save(evaluator_name="a", configuration_name="c", result=result)

        assert storage.get(run.run_id).run_id == run.run_id
        assert storage.delete(run.run_id) is True
        assert storage.get(run.run_id) is None


class TestSharedStorage:
    """Tests for the settings-driven shared instance."""

    def test_memory_backend(self, clean_storage):
        storage = get_historical_storage()

        assert isinstance(storage.repository, InMemoryRunRepository)
        assert get_historical_storage() is storage

    def test_postgres_backend(self, clean_storage):
        with patch("verdict_core.storage.historical_storage.settings") as mock_settings:
            mock_settings.HISTORY_BACKEND = "postgres"
            storage = get_historical_storage()

        assert type(storage.repository).__name__ == "PostgresRunRepository"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def storage():
    return HistoricalStorage()


@pytest.fixture
def result():
    return EvaluationResult(
        field_results={
            "output": {"label": "good", "passed": True, "score": 0.9, "message": "ok"},
            "tokens": {"label": "bad", "passed": False, "score": 0.3, "message": "too many"},
        },
        configuration={"name": "gpt-4o", "params": {}},
        metadata={"duration_ms": 12.5},
    )


@pytest.fixture
def clean_storage():
    reset_historical_storage()
    yield
    reset_historical_storage()
