"""
Deterministic ordering of configurations.

Ties are always broken alphabetically by configuration name so the same
inputs produce the same ranking and the same best pick.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from .deltas import ABS_PRECISION, FieldDelta

NetScoreFn = Callable[[Mapping[str, FieldDelta]], float]


class RankingEngine:
    """Orders configurations by one field's score, highest first."""

    def rank(self, scores: Mapping[str, float]) -> list[str]:
        return [name for name, _ in sorted(scores.items(), key=lambda item: (-item[1], item[0]))]


def weighted_net_score(weights: Optional[Mapping[str, float]] = None) -> NetScoreFn:
    """Sum of field delta_abs values, each multiplied by its weight (default 1.0)."""
    weights = dict(weights or {})

    def net_score(deltas: Mapping[str, FieldDelta]) -> float:
        return sum(weights.get(field, 1.0) * delta.delta_abs for field, delta in deltas.items())

    return net_score


class BestConfigurationSelector:
    """
    Picks the configuration with the highest net score against the baseline.

    Args:
        weights: Per-field weights for the default weighted-sum policy.
        net_score: Custom policy mapping field deltas to a single number;
            overrides `weights`.
    """

    def __init__(
        self,
        weights: Optional[Mapping[str, float]] = None,
        net_score: Optional[NetScoreFn] = None,
    ):
        self.net_score = net_score or weighted_net_score(weights)

    def net_scores(self, deltas: Mapping[str, Mapping[str, FieldDelta]]) -> dict[str, float]:
        return {
            name: round(self.net_score(field_deltas), ABS_PRECISION)
            for name, field_deltas in deltas.items()
        }

    def select(self, deltas: Mapping[str, Mapping[str, FieldDelta]]) -> Optional[str]:
        """Strict maximum of net score, alphabetical tie-break; None without candidates."""
        scores = self.net_scores(deltas)
        if not scores:
            return None
        return min(scores, key=lambda name: (-scores[name], name))
