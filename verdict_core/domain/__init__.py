from .exceptions import (
    ConfigurationError,
    ContractViolationError,
    DuplicateAliasError,
    DuplicateEvaluatorError,
    EvaluationError,
    FieldNotFoundError,
    InvalidCombinationStrategyError,
    InvalidEvaluatorError,
    InvalidEvaluatorResultError,
    InvalidLambdaResultError,
    InvalidPathError,
    LookupFailureError,
    StorageError,
    UnregisteredEvaluatorError,
    VerdictError,
)

__all__ = [
    "ConfigurationError",
    "ContractViolationError",
    "DuplicateAliasError",
    "DuplicateEvaluatorError",
    "EvaluationError",
    "FieldNotFoundError",
    "InvalidCombinationStrategyError",
    "InvalidEvaluatorError",
    "InvalidEvaluatorResultError",
    "InvalidLambdaResultError",
    "InvalidPathError",
    "LookupFailureError",
    "StorageError",
    "UnregisteredEvaluatorError",
    "VerdictError",
]
