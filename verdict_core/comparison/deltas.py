"""
Score deltas between a baseline configuration and a candidate.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

ABS_PRECISION = 4
PCT_PRECISION = 2


class FieldDelta(BaseModel):
    """Change of one field's score relative to the baseline.

    delta_pct is None when the baseline score is zero.
    """

    baseline_score: float
    score: float
    delta_abs: float
    delta_pct: Optional[float] = None

    model_config = {"frozen": True}


class FieldDeltaCalculator:
    """Absolute and percentage deltas of candidate scores against a baseline."""

    def calculate(self, baseline_score: float, score: float) -> FieldDelta:
        difference = score - baseline_score
        delta_pct = None
        if baseline_score != 0:
            delta_pct = round(difference / baseline_score * 100, PCT_PRECISION)

        return FieldDelta(
            baseline_score=baseline_score,
            score=score,
            delta_abs=round(difference, ABS_PRECISION),
            delta_pct=delta_pct,
        )

    def calculate_fields(
        self, baseline_scores: dict[str, float], scores: dict[str, float]
    ) -> dict[str, FieldDelta]:
        """Deltas for every field scored on both sides, in baseline field order."""
        return {
            field: self.calculate(baseline_score, scores[field])
            for field, baseline_score in baseline_scores.items()
            if field in scores
        }
