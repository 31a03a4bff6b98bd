"""
Evaluation engine.

Runs an EvaluatorDefinition over result records:
- extracts every selected field up front (a missing field aborts the run)
- evaluates each field's evaluator set sequentially
- aggregates into an EvaluationResult
- optionally saves it to HistoricalStorage
- for several configurations, compares them against a baseline
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from loguru import logger
from pydantic import BaseModel

from verdict_core.comparison.engine import ComparisonEngine, ComparisonResult
from verdict_core.domain.exceptions import ConfigurationError
from verdict_core.storage.historical_storage import HistoricalStorage, get_historical_storage

from .definition import EvaluatorDefinition
from .field_context import FieldContext
from .progress import ProgressEventType, ProgressTracker
from .registry import EvaluatorRegistry, get_registry
from .result import DEFAULT_CONFIGURATION, EvaluationResult


class MultiConfigurationResult(BaseModel):
    """Per-configuration results plus their comparison against the baseline."""

    results: dict[str, EvaluationResult]
    comparison: ComparisonResult
    baseline: str

    model_config = {"frozen": True}

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results.values())

    @property
    def best_configuration(self) -> Optional[str]:
        return self.comparison.best_configuration


def span_id_of(record: Any) -> str:
    if isinstance(record, Mapping):
        span_id = record.get("id")
        if span_id is not None:
            return str(span_id)
    return "unknown"


class EvaluationEngine:
    """
    Executes one definition.

    Usage:
        engine = EvaluationEngine(definition)
        result = engine.evaluate(span, configuration="gpt-4o")
    """

    def __init__(
        self,
        definition: EvaluatorDefinition,
        registry: Optional[EvaluatorRegistry] = None,
        storage: Optional[HistoricalStorage] = None,
        comparison_engine: Optional[ComparisonEngine] = None,
    ):
        self.definition = definition
        if registry is None:
            registry = get_registry()
            registry.auto_register_built_ins()
        self.registry = registry
        self._storage = storage
        self.comparison_engine = comparison_engine or ComparisonEngine()

    @property
    def storage(self) -> HistoricalStorage:
        if self._storage is None:
            self._storage = get_historical_storage()
        return self._storage

    def evaluate(
        self,
        record: Mapping[str, Any],
        configuration: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> EvaluationResult:
        """
        Evaluate one record under one configuration.

        Raises:
            FieldNotFoundError: If a selected field is missing; no result is produced.
        """
        name = str(configuration or DEFAULT_CONFIGURATION)
        tracker = self._tracker(1)
        tracker.emit(
            ProgressEventType.START,
            total_configurations=1,
            total_fields=len(self.definition.field_evaluator_sets),
        )

        result = self._evaluate_configuration(record, name, params or {}, tracker)

        tracker.emit(ProgressEventType.END, passed=result.passed)
        return result

    def evaluate_configurations(
        self,
        records: Mapping[str, Mapping[str, Any]],
        baseline: Optional[str] = None,
        params: Optional[Mapping[str, dict[str, Any]]] = None,
    ) -> MultiConfigurationResult:
        """
        Evaluate one record per configuration and compare them.

        Args:
            records: Configuration name -> result record produced under it.
            baseline: Reference configuration (defaults to the first one).
            params: Optional configuration name -> parameters.

        Raises:
            ConfigurationError: If no records are given or the baseline is unknown.
        """
        if not records:
            raise ConfigurationError("evaluate_configurations needs at least one configuration")

        names = [str(name) for name in records]
        baseline = str(baseline) if baseline is not None else names[0]
        if baseline not in names:
            raise ConfigurationError(f"Baseline {baseline!r} is not one of {names}")

        params = params or {}
        tracker = self._tracker(len(names))
        tracker.emit(
            ProgressEventType.START,
            total_configurations=len(names),
            total_fields=len(self.definition.field_evaluator_sets),
            baseline=baseline,
        )

        results: dict[str, EvaluationResult] = {}
        for name, record in records.items():
            name = str(name)
            results[name] = self._evaluate_configuration(
                record, name, dict(params.get(name, {})), tracker
            )

        comparison = self.comparison_engine.compare(
            results[baseline], {name: r for name, r in results.items() if name != baseline}
        )
        outcome = MultiConfigurationResult(results=results, comparison=comparison, baseline=baseline)

        tracker.emit(ProgressEventType.END, passed=outcome.passed)
        return outcome

    def _tracker(self, total_configurations: int) -> ProgressTracker:
        return ProgressTracker(
            list(self.definition.progress_callbacks),
            total_configurations,
            len(self.definition.field_evaluator_sets),
        )

    def _evaluate_configuration(
        self,
        record: Mapping[str, Any],
        configuration: str,
        params: dict[str, Any],
        tracker: ProgressTracker,
    ) -> EvaluationResult:
        started = time.perf_counter()
        tracker.emit(ProgressEventType.CONFIG_START, configuration=configuration, params=params)

        # Fail fast before any evaluator runs
        self.definition.field_selector.extract_all(record)

        config_info = {"name": configuration, "params": params}
        field_results: dict[str, dict[str, Any]] = {}
        field_durations: dict[str, float] = {}

        for field, evaluator_set in self.definition.field_evaluator_sets.items():
            tracker.emit(
                ProgressEventType.EVALUATOR_START,
                configuration=configuration,
                field=field,
                evaluators=evaluator_set.aliases,
            )
            field_started = time.perf_counter()

            context = FieldContext(
                field_name=evaluator_set.field_name, result=record, configuration=config_info
            )
            combined = evaluator_set.evaluate(context, registry=self.registry)

            field_durations[field] = round((time.perf_counter() - field_started) * 1000, 2)
            field_results[field] = combined
            tracker.advance()
            tracker.emit(
                ProgressEventType.EVALUATOR_END,
                configuration=configuration,
                field=field,
                passed=combined["passed"],
                score=combined.get("score"),
                duration_ms=field_durations[field],
            )

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        result = EvaluationResult(
            field_results=field_results,
            configuration=config_info,
            metadata={
                "evaluator_name": self.definition.name,
                "span_id": span_id_of(record),
                "duration_ms": duration_ms,
                "field_durations_ms": field_durations,
                "evaluated_at": datetime.now(timezone.utc).isoformat(),
            },
        )

        logger.info(
            f"Evaluated {self.definition.name!r} [{configuration}]: passed={result.passed} "
            f"quality={result.overall_quality} in {duration_ms}ms"
        )

        history = self.definition.history
        if history.auto_save:
            self.storage.save(
                evaluator_name=self.definition.name,
                configuration_name=configuration,
                span_id=span_id_of(record),
                result=result,
                tags=history.tags,
                duration_ms=duration_ms,
                history=history,
            )

        tracker.emit(
            ProgressEventType.CONFIG_END,
            configuration=configuration,
            passed=result.passed,
            overall_quality=result.overall_quality,
        )
        return result


def evaluate(
    record: Mapping[str, Any],
    definition: EvaluatorDefinition,
    configuration: Optional[str] = None,
    params: Optional[dict[str, Any]] = None,
    registry: Optional[EvaluatorRegistry] = None,
    storage: Optional[HistoricalStorage] = None,
) -> EvaluationResult:
    """Evaluate `record` with `definition` and return the EvaluationResult."""
    engine = EvaluationEngine(definition, registry=registry, storage=storage)
    return engine.evaluate(record, configuration=configuration, params=params)


def evaluate_configurations(
    records: Mapping[str, Mapping[str, Any]],
    definition: EvaluatorDefinition,
    baseline: Optional[str] = None,
    params: Optional[Mapping[str, dict[str, Any]]] = None,
    registry: Optional[EvaluatorRegistry] = None,
    storage: Optional[HistoricalStorage] = None,
) -> MultiConfigurationResult:
    """Evaluate one record per configuration and compare them against `baseline`."""
    engine = EvaluationEngine(definition, registry=registry, storage=storage)
    return engine.evaluate_configurations(records, baseline=baseline, params=params)
