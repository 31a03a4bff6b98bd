"""
Regression evaluators comparing a field with its baseline counterpart.
"""

from __future__ import annotations

from numbers import Number
from typing import Any

from ..base import Evaluator
from ..field_context import FieldContext


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


class NoRegressionEvaluator(Evaluator):
    """
    Flags a field that got worse than its baseline.

    Numeric values: the relative change in the unfavourable direction is
    compared with `tolerance_pct` (default 5). `higher_is_better` defaults
    to True. Non-numeric values only check for equality.
    """

    evaluator_name = "no_regression"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        current = field_context.value
        baseline = field_context.baseline_value
        if baseline is None:
            return {
                "label": "average",
                "message": f"No baseline for {field_context.field_name}; nothing to compare",
                "details": {"baseline_path": field_context.baseline_path},
            }

        if not (_is_number(current) and _is_number(baseline)):
            unchanged = current == baseline
            return {
                "label": "good" if unchanged else "average",
                "score": 1.0 if unchanged else 0.5,
                "message": "Unchanged from baseline" if unchanged else "Changed from baseline",
                "details": {"changed": not unchanged},
            }

        tolerance_pct = options.get("tolerance_pct", 5.0)
        higher_is_better = options.get("higher_is_better", True)
        change = current - baseline
        worse_by = -change if higher_is_better else change
        worse_pct = (worse_by / abs(baseline) * 100) if baseline else (100.0 if worse_by > 0 else 0.0)

        if worse_pct <= 0:
            label, score = "good", 1.0
        elif worse_pct <= tolerance_pct:
            label, score = "average", round(1.0 - worse_pct / (2 * tolerance_pct), 4)
        else:
            label, score = "bad", round(max(0.0, 0.5 - worse_pct / 200), 4)

        return {
            "label": label,
            "score": score,
            "details": {
                "current": current,
                "baseline": baseline,
                "regression_pct": round(max(worse_pct, 0.0), 2),
                "tolerance_pct": tolerance_pct,
            },
            "message": f"{field_context.field_name}: {baseline} -> {current}",
        }


class TokenRegressionEvaluator(NoRegressionEvaluator):
    """Token counts against baseline; fewer tokens is better, 10% tolerance."""

    evaluator_name = "token_regression"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        options.setdefault("tolerance_pct", options.pop("max_increase_pct", 10.0))
        options["higher_is_better"] = False
        return super().evaluate(field_context, **options)
