"""
Statistical evaluators over numeric fields.
"""

from __future__ import annotations

import statistics
from numbers import Number
from typing import Any

from ..base import Evaluator
from ..field_context import FieldContext


class ConsistencyEvaluator(Evaluator):
    """
    Stability of repeated measurements.

    The field holds a list of numbers (e.g. scores of repeated runs). The
    coefficient of variation is compared against `max_cv` (default 0.1).
    """

    evaluator_name = "consistency"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        values = field_context.value
        if not isinstance(values, (list, tuple)) or not all(
            isinstance(v, Number) and not isinstance(v, bool) for v in values
        ):
            raise TypeError(f"Field {field_context.field_name!r} must be a list of numbers")
        if len(values) < 2:
            return {
                "label": "average",
                "message": "Need at least two samples to measure consistency",
                "details": {"samples": len(values)},
            }

        mean = statistics.fmean(values)
        stdev = statistics.pstdev(values)
        cv = stdev / abs(mean) if mean else (0.0 if stdev == 0 else float("inf"))
        max_cv = options.get("max_cv", 0.1)

        score = round(max(0.0, 1.0 - cv / (2 * max_cv)), 4) if max_cv > 0 else (1.0 if cv == 0 else 0.0)
        label = "good" if cv <= max_cv / 2 else ("average" if cv <= max_cv else "bad")

        return {
            "label": label,
            "score": score,
            "details": {
                "samples": len(values),
                "mean": round(mean, 4),
                "stdev": round(stdev, 4),
                "coefficient_of_variation": round(cv, 4) if cv != float("inf") else None,
            },
            "message": f"Coefficient of variation {cv:.3f} (max {max_cv})",
        }


class ScoreThresholdEvaluator(Evaluator):
    """
    Labels a numeric field by thresholds.

    The value is divided by `max_value` (default 1.0) and clamped to [0, 1],
    then mapped with `threshold_good` / `threshold_average`.
    """

    evaluator_name = "score_threshold"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        value = field_context.value
        if isinstance(value, bool) or not isinstance(value, Number):
            raise TypeError(f"Field {field_context.field_name!r} must be numeric")

        max_value = options.get("max_value", 1.0)
        score = round(min(max(value / max_value, 0.0), 1.0), 4)
        label = self.calculate_label(
            score,
            threshold_good=options.get("threshold_good"),
            threshold_average=options.get("threshold_average"),
        )

        return {
            "label": label,
            "score": score,
            "message": f"{field_context.field_name} = {value} ({label})",
            "details": {"raw_value": value, "max_value": max_value},
        }
