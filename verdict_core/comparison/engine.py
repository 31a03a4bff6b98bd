"""
ComparisonEngine: cross-configuration analysis of evaluation results.

Given a baseline EvaluationResult and the results of other configurations
it computes per-field deltas, per-field rankings, improvements and
regressions, and the best configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from loguru import logger
from pydantic import BaseModel, Field

from verdict_core.domain.exceptions import DuplicateConfigurationError

from .deltas import FieldDelta, FieldDeltaCalculator
from .improvement import ImprovementDetector
from .ranking import BestConfigurationSelector, RankingEngine

if TYPE_CHECKING:
    from verdict_core.evals.result import EvaluationResult

ResultsInput = Union[Mapping[str, "EvaluationResult"], Iterable["EvaluationResult"]]


class ComparisonResult(BaseModel):
    """Outcome of comparing configurations against a baseline."""

    baseline: str
    deltas: dict[str, dict[str, FieldDelta]] = Field(default_factory=dict)
    rankings: dict[str, list[str]] = Field(default_factory=dict)
    improvements: dict[str, list[str]] = Field(default_factory=dict)
    regressions: dict[str, list[str]] = Field(default_factory=dict)
    net_scores: dict[str, float] = Field(default_factory=dict)
    best_configuration: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def configurations(self) -> list[str]:
        return list(self.deltas)

    def delta(self, configuration: str, field: str) -> Optional[FieldDelta]:
        return self.deltas.get(configuration, {}).get(field)

    def has_regressions(self) -> bool:
        return any(self.regressions.values())

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ComparisonEngine:
    """
    Usage:
        engine = ComparisonEngine()
        comparison = engine.compare(baseline_result, {"gpt-4o": result_a, "claude": result_b})
        comparison.best_configuration
    """

    def __init__(
        self,
        delta_calculator: Optional[FieldDeltaCalculator] = None,
        ranking_engine: Optional[RankingEngine] = None,
        improvement_detector: Optional[ImprovementDetector] = None,
        selector: Optional[BestConfigurationSelector] = None,
    ):
        self.delta_calculator = delta_calculator or FieldDeltaCalculator()
        self.ranking_engine = ranking_engine or RankingEngine()
        self.improvement_detector = improvement_detector or ImprovementDetector()
        self.selector = selector or BestConfigurationSelector()

    def compare(
        self, baseline_result: "EvaluationResult", other_results: ResultsInput
    ) -> ComparisonResult:
        """
        Compare every other configuration against the baseline.

        Args:
            baseline_result: Result of the baseline configuration.
            other_results: Mapping of configuration name -> result, or an
                iterable of results named by their configuration.

        Returns:
            ComparisonResult. Fields without a score on either side are skipped.
        """
        baseline_name = baseline_result.configuration_name
        others = _named_results(other_results)
        others.pop(baseline_name, None)

        baseline_scores = baseline_result.scores
        deltas: dict[str, dict[str, FieldDelta]] = {}
        improvements: dict[str, list[str]] = {}
        regressions: dict[str, list[str]] = {}

        for name, result in others.items():
            field_deltas = self.delta_calculator.calculate_fields(baseline_scores, result.scores)
            deltas[name] = field_deltas
            changes = self.improvement_detector.detect(field_deltas)
            improvements[name] = changes.improvements
            regressions[name] = changes.regressions

        rankings = {}
        for field in _all_fields(others.values()):
            field_scores = {
                name: result.scores[field] for name, result in others.items() if field in result.scores
            }
            rankings[field] = self.ranking_engine.rank(field_scores)

        comparison = ComparisonResult(
            baseline=baseline_name,
            deltas=deltas,
            rankings=rankings,
            improvements=improvements,
            regressions=regressions,
            net_scores=self.selector.net_scores(deltas),
            best_configuration=self.selector.select(deltas),
        )

        logger.info(
            f"Compared {len(others)} configurations against {baseline_name!r}: "
            f"best={comparison.best_configuration!r}"
        )
        return comparison


def _named_results(results: ResultsInput) -> dict[str, "EvaluationResult"]:
    if isinstance(results, Mapping):
        return {str(name): result for name, result in results.items()}

    named: dict[str, "EvaluationResult"] = {}
    for result in results:
        name = result.configuration_name
        if name in named:
            raise DuplicateConfigurationError(name)
        named[name] = result
    return named


def _all_fields(results: Iterable["EvaluationResult"]) -> list[str]:
    fields: list[str] = []
    for result in results:
        for field in result.scores:
            if field not in fields:
                fields.append(field)
    return fields
