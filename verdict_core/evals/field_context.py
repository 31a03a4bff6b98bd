"""
Per-field view over a result record.

A FieldContext is created for every (field, evaluator set) invocation and
handed to evaluators. It exposes the selected value, its baseline
counterpart and read access to the rest of the record.
"""

from __future__ import annotations

from numbers import Number
from typing import Any

from pydantic import BaseModel, Field

from .field_selector import extract_value, field_exists, parse_path

BASELINE_PREFIX = "baseline_"


class FieldContext(BaseModel):
    """Immutable view of one field of a result record.

    Attributes:
        field_name: Dotted path of the evaluated field.
        result: The full result record.
        configuration: Name and params of the configuration being evaluated.
    """

    field_name: str
    result: Any
    configuration: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def value(self) -> Any:
        """Value of the evaluated field (raises FieldNotFoundError if absent)."""
        return extract_value(self.field_name, self.result)

    @property
    def baseline_path(self) -> str:
        """`output` -> `baseline_output`, `usage.total_tokens` -> `baseline_usage.total_tokens`."""
        segments = parse_path(self.field_name)
        return ".".join((BASELINE_PREFIX + segments[0],) + segments[1:])

    @property
    def baseline_value(self) -> Any:
        """Baseline counterpart of the field, or None when the record has none."""
        if not field_exists(self.baseline_path, self.result):
            return None
        return extract_value(self.baseline_path, self.result)

    @property
    def delta(self) -> float | None:
        """`value - baseline_value` when both are numeric."""
        current, baseline = self.value, self.baseline_value
        if _is_number(current) and _is_number(baseline):
            return current - baseline
        return None

    def field_exists(self, path: str) -> bool:
        return field_exists(path, self.result)

    def get(self, path: str, default: Any = None) -> Any:
        if not field_exists(path, self.result):
            return default
        return extract_value(path, self.result)

    def __getitem__(self, path: str) -> Any:
        if path == "configuration" and not field_exists(path, self.result):
            return self.configuration
        return extract_value(path, self.result)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)
