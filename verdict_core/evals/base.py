"""
Evaluator contract.

Every scoring strategy subclasses Evaluator and returns a plain dict result:

    {"label": "good" | "average" | "bad",
     "score": 0.0..1.0 (optional),
     "message": str and/or "details": dict}

validate_result() is the single definition of a legal result and is applied
to every evaluator output and every combined result.
"""

from __future__ import annotations

import abc
from enum import Enum
from numbers import Number
from typing import Any, ClassVar, Mapping

from verdict_core.config import settings
from verdict_core.domain.exceptions import InvalidEvaluatorResultError

from .field_context import FieldContext


class Label(str, Enum):
    """Quality labels, ordered bad < average < good."""

    GOOD = "good"
    AVERAGE = "average"
    BAD = "bad"


LABELS = tuple(label.value for label in Label)
LABEL_RANK = {Label.BAD.value: 0, Label.AVERAGE.value: 1, Label.GOOD.value: 2}
PASSING_LABELS = frozenset({Label.GOOD.value, Label.AVERAGE.value})


def label_of(result: Mapping[str, Any]) -> str:
    label = result.get("label")
    return label.value if isinstance(label, Label) else label


def result_passed(result: Mapping[str, Any]) -> bool:
    """Boolean pass proxy of a result: good and average pass, bad fails."""
    return label_of(result) in PASSING_LABELS


def validate_result(result: Any, evaluator: str | None = None) -> Mapping[str, Any]:
    """
    Check a result against the evaluator result contract.

    Args:
        result: Value returned by an evaluator or combinator.
        evaluator: Name used in the error message.

    Returns:
        The result, unchanged.

    Raises:
        InvalidEvaluatorResultError: On any contract violation.
    """
    if not isinstance(result, Mapping):
        raise InvalidEvaluatorResultError(
            evaluator, f"expected a mapping, got {type(result).__name__}"
        )

    if "label" not in result:
        raise InvalidEvaluatorResultError(evaluator, "missing 'label'")
    if label_of(result) not in LABELS:
        raise InvalidEvaluatorResultError(
            evaluator, f"label {result['label']!r} is not one of {', '.join(LABELS)}"
        )

    score = result.get("score")
    if score is not None:
        if not isinstance(score, Number) or isinstance(score, bool):
            raise InvalidEvaluatorResultError(evaluator, f"score {score!r} is not numeric")
        if not 0.0 <= score <= 1.0:
            raise InvalidEvaluatorResultError(evaluator, f"score {score} is outside [0.0, 1.0]")

    if result.get("message") is None and result.get("details") is None:
        raise InvalidEvaluatorResultError(evaluator, "result needs a 'message' or 'details'")

    return result


class Evaluator(abc.ABC):
    """
    Base class for evaluators.

    Subclasses set `evaluator_name` (the registry key) and implement
    `evaluate`. Options declared in a definition are passed as keyword
    arguments.
    """

    evaluator_name: ClassVar[str]

    @abc.abstractmethod
    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        """
        Score one field.

        Args:
            field_context: View over the evaluated field and its record.
            **options: Evaluator options from the definition.

        Returns:
            A result dict satisfying the evaluator result contract.
        """
        ...

    def calculate_label(
        self,
        score: float,
        threshold_good: float | None = None,
        threshold_average: float | None = None,
    ) -> str:
        """Map a score to a label: >= good cutoff -> good, >= average cutoff -> average."""
        if threshold_good is None:
            threshold_good = settings.LABEL_THRESHOLD_GOOD
        if threshold_average is None:
            threshold_average = settings.LABEL_THRESHOLD_AVERAGE

        if score >= threshold_good:
            return Label.GOOD.value
        if score >= threshold_average:
            return Label.AVERAGE.value
        return Label.BAD.value

    def validate_result(self, result: Any) -> Mapping[str, Any]:
        return validate_result(result, evaluator=getattr(self, "evaluator_name", None))
