"""
Performance evaluators for numeric span metrics.
"""

from __future__ import annotations

from numbers import Number
from typing import Any

from ..base import Evaluator
from ..field_context import FieldContext


def _numeric(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Number):
        raise TypeError(f"Field {field!r} must be numeric, got {type(value).__name__}")
    return float(value)


class TokenEfficiencyEvaluator(Evaluator):
    """
    Token usage against a budget.

    The budget is `max_tokens`, or the baseline value grown by
    `max_increase_pct` percent. Usage at or under budget is good; the score
    drops linearly to zero at twice the budget.
    """

    evaluator_name = "token_efficiency"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        tokens = _numeric(field_context.value, field_context.field_name)

        budget = options.get("max_tokens")
        if budget is None:
            baseline = field_context.baseline_value
            if baseline is None:
                raise ValueError("token_efficiency needs max_tokens or a baseline value")
            budget = _numeric(baseline, field_context.baseline_path) * (1 + options.get("max_increase_pct", 10) / 100)

        if budget <= 0:
            score = 1.0 if tokens <= 0 else 0.0
        elif tokens <= budget:
            score = 1.0
        else:
            score = max(0.0, 1.0 - (tokens - budget) / budget)
        score = round(score, 4)

        return {
            "label": self.calculate_label(score, 1.0, 0.8),
            "score": score,
            "details": {"tokens": tokens, "budget": round(budget, 2)},
            "message": f"{tokens:.0f} tokens against a budget of {budget:.0f}",
        }


class LatencyEvaluator(Evaluator):
    """Latency in milliseconds against `max_ms` (default 2000)."""

    evaluator_name = "latency"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        latency = _numeric(field_context.value, field_context.field_name)
        max_ms = options.get("max_ms", 2000)

        if latency <= max_ms:
            score = 1.0
        else:
            score = max(0.0, 1.0 - (latency - max_ms) / max_ms)
        score = round(score, 4)

        return {
            "label": self.calculate_label(score, 1.0, 0.5),
            "score": score,
            "details": {"latency_ms": latency, "max_ms": max_ms},
            "message": f"Latency {latency:.0f}ms (limit {max_ms}ms)",
        }
