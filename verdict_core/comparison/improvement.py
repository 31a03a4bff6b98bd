"""
Improvement / regression classification of field deltas.
"""

from __future__ import annotations

from typing import Mapping, NamedTuple

from .deltas import FieldDelta


class FieldChanges(NamedTuple):
    improvements: list[str]
    regressions: list[str]


class ImprovementDetector:
    """Positive delta -> improvement, negative -> regression, zero -> neither."""

    def detect(self, deltas: Mapping[str, FieldDelta]) -> FieldChanges:
        improvements = [field for field, delta in deltas.items() if delta.delta_abs > 0]
        regressions = [field for field, delta in deltas.items() if delta.delta_abs < 0]
        return FieldChanges(improvements, regressions)
