"""
Evaluator registry.

Maps evaluator names to evaluator classes. A single process-wide registry is
obtained with get_registry(); reset_registry() drops it for test isolation.
Writes are serialized with a lock, lookups read the dict without locking.
"""

from __future__ import annotations

import inspect
import threading
from typing import Any

from loguru import logger

from verdict_core.domain.exceptions import (
    DuplicateEvaluatorError,
    InvalidEvaluatorError,
    UnregisteredEvaluatorError,
)

MAX_SUGGESTION_DISTANCE = 2
MAX_SUGGESTIONS = 3


def levenshtein_distance(source: str, target: str) -> int:
    """
    Edit distance between two strings.

    Insert, delete, substitute and swapping two adjacent characters each
    cost one edit, so "smenatic" is two edits away from "semantic".
    """
    n, m = len(source), len(target)
    if n == 0:
        return m
    if m == 0:
        return n

    matrix = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n + 1):
        matrix[i][0] = i
    for j in range(m + 1):
        matrix[0][j] = j

    for i in range(1, n + 1):
        for j in range(1, m + 1):
            cost = 0 if source[i - 1] == target[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )
            if (
                i > 1
                and j > 1
                and source[i - 1] == target[j - 2]
                and source[i - 2] == target[j - 1]
            ):
                matrix[i][j] = min(matrix[i][j], matrix[i - 2][j - 2] + 1)

    return matrix[n][m]


class EvaluatorRegistry:
    """
    Thread-safe name -> evaluator class mapping.

    Usage:
        registry = get_registry()
        registry.register("citation_grounding", CitationGroundingEvaluator)
        evaluator_cls = registry.get("citation_grounding")
    """

    def __init__(self):
        self._evaluators: dict[str, type] = {}
        self._lock = threading.Lock()

    def register(self, name: str, evaluator_class: Any) -> None:
        """
        Register an evaluator class under `name`.

        Raises:
            DuplicateEvaluatorError: If the name is taken.
            InvalidEvaluatorError: If the class does not implement the
                contract or declares a different evaluator_name.
        """
        name = str(name)
        self._check_contract(name, evaluator_class)

        with self._lock:
            if name in self._evaluators:
                raise DuplicateEvaluatorError(name)
            self._evaluators = {**self._evaluators, name: evaluator_class}

        logger.debug(f"Registered evaluator {name!r} -> {evaluator_class.__name__}")

    def get(self, name: str) -> type:
        """
        Look up an evaluator class.

        Raises:
            UnregisteredEvaluatorError: With close-match suggestions.
        """
        name = str(name)
        evaluators = self._evaluators
        if name in evaluators:
            return evaluators[name]
        raise UnregisteredEvaluatorError(name, self.suggestions_for(name))

    def registered(self, name: str) -> bool:
        return str(name) in self._evaluators

    def names(self) -> list[str]:
        return sorted(self._evaluators)

    def unregister(self, name: str) -> None:
        with self._lock:
            evaluators = dict(self._evaluators)
            evaluators.pop(str(name), None)
            self._evaluators = evaluators

    def clear(self) -> None:
        with self._lock:
            self._evaluators = {}

    def suggestions_for(self, name: str) -> list[str]:
        """Up to three registered names within edit distance 2, closest first."""
        scored = []
        for candidate in self._evaluators:
            distance = levenshtein_distance(name, candidate)
            if distance <= MAX_SUGGESTION_DISTANCE:
                scored.append((distance, candidate))
        scored.sort()
        return [candidate for _, candidate in scored[:MAX_SUGGESTIONS]]

    def auto_register_built_ins(self) -> int:
        """
        Register every built-in evaluator whose name is still free.

        Safe to call repeatedly; user registrations under a built-in name win.

        Returns:
            Number of evaluators newly registered.
        """
        from .evaluators import BUILT_IN_EVALUATORS

        added = 0
        with self._lock:
            evaluators = dict(self._evaluators)
            for evaluator_class in BUILT_IN_EVALUATORS:
                name = evaluator_class.evaluator_name
                if name in evaluators:
                    continue
                evaluators[name] = evaluator_class
                added += 1
            self._evaluators = evaluators

        if added:
            logger.info(f"Registered {added} built-in evaluators")
        return added

    @staticmethod
    def _check_contract(name: str, evaluator_class: Any) -> None:
        if not inspect.isclass(evaluator_class):
            raise InvalidEvaluatorError(
                f"Evaluator {name!r} must be a class, got {type(evaluator_class).__name__}"
            )
        if not callable(getattr(evaluator_class, "evaluate", None)):
            raise InvalidEvaluatorError(
                f"Evaluator class {evaluator_class.__name__} for {name!r} does not define evaluate()"
            )
        if inspect.isabstract(evaluator_class):
            raise InvalidEvaluatorError(
                f"Evaluator class {evaluator_class.__name__} for {name!r} is abstract"
            )
        declared = getattr(evaluator_class, "evaluator_name", None)
        if declared is None:
            raise InvalidEvaluatorError(
                f"Evaluator class {evaluator_class.__name__} does not declare evaluator_name"
            )
        if str(declared) != name:
            raise InvalidEvaluatorError(
                f"Evaluator class {evaluator_class.__name__} declares evaluator_name "
                f"{declared!r} but was registered as {name!r}"
            )


_registry: EvaluatorRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> EvaluatorRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = EvaluatorRegistry()
    return _registry


def reset_registry() -> None:
    """Drop the process-wide registry (used by tests)."""
    global _registry
    with _registry_lock:
        _registry = None


def register_evaluator(name: str, evaluator_class: Any) -> None:
    get_registry().register(name, evaluator_class)


def get_evaluator(name: str) -> type:
    return get_registry().get(name)
