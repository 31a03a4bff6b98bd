"""
Cross-configuration comparison.

- FieldDeltaCalculator: absolute and percentage score deltas
- RankingEngine: per-field ordering with alphabetical tie-break
- ImprovementDetector: improvement / regression field sets
- BestConfigurationSelector: highest net score pick
- ComparisonEngine: all of the above over EvaluationResults
"""

from .deltas import FieldDelta, FieldDeltaCalculator
from .engine import ComparisonEngine, ComparisonResult
from .improvement import FieldChanges, ImprovementDetector
from .ranking import BestConfigurationSelector, RankingEngine, weighted_net_score

__all__ = [
    "BestConfigurationSelector",
    "ComparisonEngine",
    "ComparisonResult",
    "FieldChanges",
    "FieldDelta",
    "FieldDeltaCalculator",
    "ImprovementDetector",
    "RankingEngine",
    "weighted_net_score",
]
