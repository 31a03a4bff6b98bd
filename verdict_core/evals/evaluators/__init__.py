"""
Built-in evaluators.

Registered on demand by EvaluatorRegistry.auto_register_built_ins().
"""

from .llm_judge import LLMJudgeEvaluator, MultiJudgeEvaluator
from .performance import LatencyEvaluator, TokenEfficiencyEvaluator
from .quality import CoherenceEvaluator, RelevanceEvaluator, SemanticSimilarityEvaluator
from .regression import NoRegressionEvaluator, TokenRegressionEvaluator
from .safety import PIIDetectionEvaluator, RefusalEvaluator, ToxicityEvaluator
from .statistical import ConsistencyEvaluator, ScoreThresholdEvaluator
from .structural import (
    CitationEvaluator,
    FormatComplianceEvaluator,
    JsonValidityEvaluator,
    LengthConstraintEvaluator,
)

BUILT_IN_EVALUATORS = [
    # Quality
    SemanticSimilarityEvaluator,
    CoherenceEvaluator,
    RelevanceEvaluator,
    # Performance
    TokenEfficiencyEvaluator,
    LatencyEvaluator,
    # Regression
    NoRegressionEvaluator,
    TokenRegressionEvaluator,
    # Safety
    PIIDetectionEvaluator,
    ToxicityEvaluator,
    RefusalEvaluator,
    CitationEvaluator,
    # Statistical
    ConsistencyEvaluator,
    ScoreThresholdEvaluator,
    # Structural
    JsonValidityEvaluator,
    FormatComplianceEvaluator,
    LengthConstraintEvaluator,
    # LLM
    LLMJudgeEvaluator,
    MultiJudgeEvaluator,
]

__all__ = [cls.__name__ for cls in BUILT_IN_EVALUATORS] + ["BUILT_IN_EVALUATORS"]
