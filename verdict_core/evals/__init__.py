"""
Evaluation core.

Usage:
    from verdict_core.evals import define, evaluate

    definition = define("rag_quality", lambda d: (
        d.select("output.text", as_="answer"),
        d.evaluate_field("answer").add("coherence").add("pii_detection"),
    ))
    result = evaluate(span_record, definition)
"""

from .base import Evaluator, Label, result_passed, validate_result
from .combination import AND, OR, combine
from .definition import DefinitionBuilder, EvaluatorDefinition, define
from .engine import EvaluationEngine, MultiConfigurationResult, evaluate, evaluate_configurations
from .field_context import FieldContext
from .field_evaluator_set import FieldEvaluatorSet
from .field_selector import FieldSelector, extract_value, parse_path
from .progress import ProgressEvent, ProgressEventType
from .registry import EvaluatorRegistry, get_evaluator, get_registry, register_evaluator, reset_registry
from .result import EvaluationResult

__all__ = [
    "AND",
    "OR",
    "DefinitionBuilder",
    "EvaluationEngine",
    "EvaluationResult",
    "Evaluator",
    "EvaluatorDefinition",
    "EvaluatorRegistry",
    "FieldContext",
    "FieldEvaluatorSet",
    "FieldSelector",
    "Label",
    "MultiConfigurationResult",
    "ProgressEvent",
    "ProgressEventType",
    "combine",
    "define",
    "evaluate",
    "evaluate_configurations",
    "extract_value",
    "get_evaluator",
    "get_registry",
    "parse_path",
    "register_evaluator",
    "reset_registry",
    "result_passed",
    "validate_result",
]
