"""
Declarative evaluator definitions.

A definition names the fields to select from a result record, the
evaluators attached to each field with their combination strategy, and
optionally history and progress settings.

Usage:
    def configure(d):
        d.select("output")
        d.select("usage.total_tokens", as_="tokens")
        d.evaluate_field("output").add("semantic_similarity", threshold=0.8).add("pii_detection")
        d.evaluate_field("tokens").add("token_efficiency", max_increase_pct=10)
        d.history(auto_save=True, retention_days=30, retention_count=100)

    definition = define("quality_check", configure)
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from verdict_core.domain.exceptions import ConfigurationError
from verdict_core.storage.models import HistoryConfig

from .field_evaluator_set import FieldEvaluatorSet
from .field_selector import FieldSelector
from .progress import ProgressCallback


class EvaluatorDefinition:
    """Built, immutable definition consumed by the evaluation engine."""

    def __init__(
        self,
        name: str,
        field_selector: FieldSelector,
        field_evaluator_sets: dict[str, FieldEvaluatorSet],
        history: HistoryConfig,
        progress_callbacks: list[ProgressCallback],
    ):
        self.name = name
        self.field_selector = field_selector
        self._field_evaluator_sets = dict(field_evaluator_sets)
        self.history = history
        self.progress_callbacks = tuple(progress_callbacks)

    @property
    def field_evaluator_sets(self) -> dict[str, FieldEvaluatorSet]:
        return dict(self._field_evaluator_sets)

    @property
    def evaluated_fields(self) -> list[str]:
        return list(self._field_evaluator_sets)

    def __repr__(self) -> str:
        return f"EvaluatorDefinition(name={self.name!r}, fields={self.evaluated_fields!r})"


class DefinitionBuilder:
    """Collects selections, evaluators and settings, then builds a definition."""

    def __init__(self, name: str):
        if not name:
            raise ConfigurationError("A definition needs a name")
        self.name = str(name)
        self.field_selector = FieldSelector()
        self._evaluator_sets: dict[str, FieldEvaluatorSet] = {}
        self._history = HistoryConfig()
        self._progress_callbacks: list[ProgressCallback] = []

    def select(self, path: str, as_: Optional[str] = None) -> "DefinitionBuilder":
        """Select a dotted field path, optionally renamed."""
        self.field_selector.add_field(path, as_=as_)
        return self

    def evaluate_field(self, name: str) -> FieldEvaluatorSet:
        """
        Evaluator set for a selected field (by alias or path).

        Unselected paths are selected on the fly.
        """
        if not self.field_selector.is_selected(name):
            self.field_selector.add_field(name)

        path = self.field_selector.resolve_alias(name)
        if path not in self._evaluator_sets:
            self._evaluator_sets[path] = FieldEvaluatorSet(path)
        return self._evaluator_sets[path]

    def history(
        self,
        auto_save: bool = True,
        retention_days: Optional[int] = None,
        retention_count: Optional[int] = None,
        tags: Optional[dict[str, Any]] = None,
        cleanup: Optional[str] = None,
    ) -> "DefinitionBuilder":
        """Persist results of this definition and configure retention."""
        values: dict[str, Any] = {
            "auto_save": auto_save,
            "retention_days": retention_days,
            "retention_count": retention_count,
            "tags": dict(tags or {}),
        }
        if cleanup is not None:
            values["cleanup"] = cleanup
        self._history = HistoryConfig(**values)
        return self

    def on_progress(self, callback: ProgressCallback) -> "DefinitionBuilder":
        if not callable(callback):
            raise ConfigurationError("Progress callbacks must be callable")
        self._progress_callbacks.append(callback)
        return self

    def build(self) -> EvaluatorDefinition:
        """
        Freeze every field evaluator set and return the definition.

        Raises:
            ConfigurationError: If no field has evaluators or a field set is empty.
        """
        if not self._evaluator_sets:
            raise ConfigurationError(f"Definition {self.name!r} evaluates no fields")
        for evaluator_set in self._evaluator_sets.values():
            evaluator_set.freeze()

        # keyed by path while building; aliases may be attached after evaluate_field
        named_sets = {
            self.field_selector.name_for(path): evaluator_set
            for path, evaluator_set in self._evaluator_sets.items()
        }
        return EvaluatorDefinition(
            name=self.name,
            field_selector=self.field_selector,
            field_evaluator_sets=named_sets,
            history=self._history,
            progress_callbacks=self._progress_callbacks,
        )


def define(name: str, configure: Callable[[DefinitionBuilder], Any]) -> EvaluatorDefinition:
    """Build a definition by running `configure` against a fresh builder."""
    builder = DefinitionBuilder(name)
    configure(builder)
    return builder.build()
