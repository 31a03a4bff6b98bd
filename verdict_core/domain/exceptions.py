"""
Standard exceptions for verdict.

This module defines the hierarchy of exceptions used across the engine:
- ConfigurationError: programmer errors raised while building a definition
  or registering an evaluator
- EvaluationError: fatal conditions hit while evaluating a record
- ContractViolationError: malformed evaluator or combinator results
- LookupFailureError: unknown evaluator names
- StorageError: failures of the history backend
"""

from __future__ import annotations

from typing import Iterable


class VerdictError(Exception):
    """Base exception for all verdict errors."""
    pass


class ConfigurationError(VerdictError):
    """Base exception for definition and registration errors."""
    pass


class InvalidPathError(ConfigurationError):
    """A field path is empty or syntactically invalid."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid field path {path!r}: {reason}")


class DuplicateAliasError(ConfigurationError):
    """An alias is already bound to something else."""

    def __init__(self, alias: str, existing: str, requested: str):
        self.alias = alias
        self.existing = existing
        self.requested = requested
        super().__init__(
            f"Alias {alias!r} already maps to {existing!r}, cannot map it to {requested!r}"
        )


class InvalidCombinationStrategyError(ConfigurationError):
    """Combination strategy is unknown or was already set."""
    pass


class DuplicateEvaluatorError(ConfigurationError):
    """An evaluator name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Evaluator {name!r} is already registered")


class InvalidEvaluatorError(ConfigurationError):
    """A class does not implement the evaluator contract."""
    pass


class InvalidRetentionPolicyError(ConfigurationError):
    """A retention limit is negative."""
    pass


class DuplicateConfigurationError(ConfigurationError):
    """Two results in one comparison share a configuration name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate configuration name {name!r} in comparison input")


class EvaluationError(VerdictError):
    """Base exception for evaluation-time failures."""
    pass


class FieldNotFoundError(EvaluationError):
    """A selected field is missing from the result record."""

    def __init__(self, path: str, segment: str):
        self.path = path
        self.segment = segment
        super().__init__(f"Field {path!r} not found in result (missing segment {segment!r})")


class ContractViolationError(VerdictError):
    """Base exception for results that break the evaluator result contract."""
    pass


class InvalidEvaluatorResultError(ContractViolationError):
    """An evaluator returned a malformed result."""

    def __init__(self, evaluator: str | None, problem: str):
        self.evaluator = evaluator
        self.problem = problem
        source = f"Evaluator {evaluator!r}" if evaluator else "Evaluator"
        super().__init__(f"{source} returned an invalid result: {problem}")


class InvalidLambdaResultError(ContractViolationError):
    """A custom combination callable returned a malformed result."""

    def __init__(self, field: str | None, missing_keys: Iterable[str], problem: str | None = None):
        self.field = field
        self.missing_keys = list(missing_keys)
        target = f" for field {field!r}" if field else ""
        if problem is None:
            problem = f"missing required keys: {', '.join(self.missing_keys)}"
        super().__init__(f"Custom combination{target} returned an invalid result: {problem}")


class LookupFailureError(VerdictError):
    """Base exception for lookup failures."""
    pass


class UnregisteredEvaluatorError(LookupFailureError):
    """No evaluator is registered under the requested name."""

    def __init__(self, name: str, suggestions: Iterable[str] = ()):
        self.name = name
        self.suggestions = list(suggestions)
        message = f"No evaluator registered as {name!r}"
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)


class StorageError(VerdictError):
    """Error during history storage operations."""
    pass
