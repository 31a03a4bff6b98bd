"""
Combination of several evaluator results for one field.

Pure functions over an alias -> result mapping. Every combinator returns a
combined result dict with label, passed, score, message, details and the
individual evaluator_results.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Union

from verdict_core.domain.exceptions import (
    InvalidCombinationStrategyError,
    InvalidEvaluatorResultError,
    InvalidLambdaResultError,
)

from .base import LABEL_RANK, Label, label_of, result_passed, validate_result

AND = "and"
OR = "or"
BUILT_IN_STRATEGIES = (AND, OR)
LAMBDA_REQUIRED_KEYS = ("label", "score", "message", "details")

CombinationFn = Callable[[dict[str, dict[str, Any]]], Mapping[str, Any]]
CombinationStrategy = Union[str, CombinationFn]


def normalize_strategy(strategy: Any) -> CombinationStrategy:
    """Accept "and"/"or" (any case) or a callable."""
    if callable(strategy):
        return strategy
    if isinstance(strategy, str) and strategy.lower() in BUILT_IN_STRATEGIES:
        return strategy.lower()
    raise InvalidCombinationStrategyError(
        f"Unknown combination strategy {strategy!r}; use 'and', 'or' or a callable"
    )


def merge_details(results: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
    """Shallow merge of every result's details; later evaluators win on collisions."""
    merged: dict[str, Any] = {}
    for result in results.values():
        details = result.get("details")
        if isinstance(details, Mapping):
            merged.update(details)
    return merged


def _scores(results: Mapping[str, Mapping[str, Any]]) -> list[float]:
    return [r["score"] for r in results.values() if r.get("score") is not None]


def _message(alias: str, result: Mapping[str, Any]) -> str:
    message = result.get("message")
    if message is None:
        message = label_of(result)
    return f"{alias}: {message}"


def _join_messages(results: Mapping[str, Mapping[str, Any]]) -> str:
    if not results:
        return "no evaluator results"
    return "; ".join(_message(alias, result) for alias, result in results.items())


def combine_and(results: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
    """Pass only if every result passes. Score is the minimum, label the worst."""
    scores = _scores(results)
    labels = [label_of(r) for r in results.values()]
    label = min(labels, key=LABEL_RANK.__getitem__) if labels else Label.GOOD.value

    return {
        "label": label,
        "passed": all(result_passed(r) for r in results.values()),
        "score": min(scores) if scores else None,
        "message": _join_messages(results),
        "details": merge_details(results),
        "evaluator_results": dict(results),
    }


def combine_or(results: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
    """Pass if any result passes. Score is the maximum, label the best."""
    scores = _scores(results)
    labels = [label_of(r) for r in results.values()]
    label = max(labels, key=LABEL_RANK.__getitem__) if labels else Label.BAD.value

    passing = {alias: r for alias, r in results.items() if result_passed(r)}

    return {
        "label": label,
        "passed": bool(passing),
        "score": max(scores) if scores else None,
        "message": _join_messages(passing or results),
        "details": merge_details(results),
        "evaluator_results": dict(results),
    }


def validate_lambda_result(result: Any, field: str | None = None) -> Mapping[str, Any]:
    """
    Check the output of a custom combination callable.

    Raises:
        InvalidLambdaResultError: Listing the missing required keys, or the
            contract violation if all keys are present.
    """
    if not isinstance(result, Mapping):
        raise InvalidLambdaResultError(
            field,
            LAMBDA_REQUIRED_KEYS,
            problem=f"expected a mapping, got {type(result).__name__}",
        )

    missing = [key for key in LAMBDA_REQUIRED_KEYS if key not in result]
    if missing:
        raise InvalidLambdaResultError(field, missing)

    try:
        validate_result(result, evaluator="custom combination")
    except InvalidEvaluatorResultError as e:
        raise InvalidLambdaResultError(field, [], problem=e.problem) from e

    return result


def combine_custom(
    fn: CombinationFn,
    results: Mapping[str, Mapping[str, Any]],
    field: str | None = None,
) -> dict[str, Any]:
    """Delegate combination to a user callable and validate what it returns."""
    combined = dict(validate_lambda_result(fn(dict(results)), field=field))
    if isinstance(combined["label"], Label):
        combined["label"] = combined["label"].value
    combined["passed"] = result_passed(combined)
    combined.setdefault("evaluator_results", dict(results))
    return combined


def combine(
    strategy: CombinationStrategy,
    results: Mapping[str, Mapping[str, Any]],
    field: str | None = None,
) -> dict[str, Any]:
    strategy = normalize_strategy(strategy)
    if strategy == AND:
        return combine_and(results)
    if strategy == OR:
        return combine_or(results)
    return combine_custom(strategy, results, field=field)
