"""
FieldEvaluatorSet: every evaluator attached to one field.

Evaluators run sequentially in definition order. An exception raised by one
evaluator is turned into a failing result for that evaluator only; contract
violations and missing fields still propagate.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from verdict_core.domain.exceptions import (
    ConfigurationError,
    ContractViolationError,
    DuplicateAliasError,
    FieldNotFoundError,
    InvalidCombinationStrategyError,
)

from .base import validate_result
from .combination import AND, CombinationStrategy, combine, normalize_strategy
from .field_context import FieldContext
from .registry import EvaluatorRegistry, get_registry

BACKTRACE_FRAMES = 4


@dataclass(frozen=True)
class EvaluatorConfig:
    """One evaluator attached to a field."""

    evaluator_name: str
    alias: str
    options: dict[str, Any] = field(default_factory=dict)


def failure_result(error: Exception) -> dict[str, Any]:
    """Synthetic failing result for an evaluator that raised."""
    frames = traceback.format_tb(error.__traceback__)[:BACKTRACE_FRAMES]
    return {
        "label": "bad",
        "score": 0.0,
        "message": f"Evaluator failed: {error}",
        "details": {
            "error": str(error),
            "error_class": type(error).__name__,
            "backtrace": [frame.strip() for frame in frames],
        },
    }


class FieldEvaluatorSet:
    """
    Ordered evaluators for a single field plus their combination strategy.

    Usage:
        evaluators = FieldEvaluatorSet("output")
        evaluators.add("semantic_similarity", threshold=0.8)
        evaluators.add("pii_detection", alias="no_pii")
        evaluators.combine_with("and")
        combined = evaluators.evaluate(field_context)
    """

    def __init__(self, field_name: str):
        self.field_name = field_name
        self._evaluators: list[EvaluatorConfig] = []
        self._strategy: CombinationStrategy | None = None
        self._frozen = False

    @property
    def evaluators(self) -> list[EvaluatorConfig]:
        return list(self._evaluators)

    @property
    def aliases(self) -> list[str]:
        return [config.alias for config in self._evaluators]

    @property
    def combination_strategy(self) -> CombinationStrategy:
        return self._strategy if self._strategy is not None else AND

    def add(self, evaluator_name: str, alias: str | None = None, **options: Any) -> "FieldEvaluatorSet":
        """
        Attach an evaluator.

        Raises:
            DuplicateAliasError: If the alias is already used on this field.
        """
        self._ensure_mutable()
        evaluator_name = str(evaluator_name)
        alias = alias or evaluator_name

        for config in self._evaluators:
            if config.alias == alias:
                raise DuplicateAliasError(alias, config.evaluator_name, evaluator_name)

        self._evaluators.append(EvaluatorConfig(evaluator_name, alias, dict(options)))
        return self

    def combine_with(self, strategy: Any) -> "FieldEvaluatorSet":
        """
        Set the combination strategy. May be called once.

        Raises:
            InvalidCombinationStrategyError: If the strategy is unknown or
                already set.
        """
        self._ensure_mutable()
        if self._strategy is not None:
            raise InvalidCombinationStrategyError(
                f"Combination strategy for field {self.field_name!r} is already set"
            )
        self._strategy = normalize_strategy(strategy)
        return self

    def freeze(self) -> None:
        if not self._evaluators:
            raise ConfigurationError(f"Field {self.field_name!r} has no evaluators")
        self._frozen = True

    def evaluate(
        self, field_context: FieldContext, registry: EvaluatorRegistry | None = None
    ) -> dict[str, Any]:
        """
        Run every evaluator and combine their results.

        Raises:
            UnregisteredEvaluatorError: If an evaluator name is unknown.
            InvalidEvaluatorResultError: If an evaluator returns a malformed result.
            InvalidLambdaResultError: If a custom combination misbehaves.
            FieldNotFoundError: If an evaluator reads a missing field.
        """
        registry = registry or get_registry()
        results: dict[str, dict[str, Any]] = {}

        for config in self._evaluators:
            evaluator_class = registry.get(config.evaluator_name)
            try:
                evaluator = evaluator_class()
                result = evaluator.evaluate(field_context, **config.options)
            except (ContractViolationError, FieldNotFoundError):
                raise
            except Exception as e:
                logger.warning(
                    f"Evaluator {config.alias!r} failed on field {self.field_name!r}: "
                    f"{type(e).__name__}: {e}"
                )
                results[config.alias] = failure_result(e)
                continue

            validate_result(result, evaluator=config.evaluator_name)
            results[config.alias] = dict(result)
            logger.debug(
                f"Evaluator {config.alias!r} on {self.field_name!r}: "
                f"label={result['label']} score={result.get('score')}"
            )

        combined = combine(self.combination_strategy, results, field=self.field_name)
        return dict(validate_result(combined, evaluator=f"{self.field_name} combination"))

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"Evaluators for field {self.field_name!r} cannot change after the definition is built"
            )
