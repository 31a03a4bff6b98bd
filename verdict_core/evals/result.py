"""
EvaluationResult: aggregated verdict of one definition over one record.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .base import Label, label_of, result_passed

DEFAULT_CONFIGURATION = "default"


class EvaluationResult(BaseModel):
    """Field name -> combined field result, plus configuration and metadata.

    Attributes:
        field_results: Combined result per evaluated field, in definition order.
        configuration: {"name": ..., "params": {...}} of the evaluated configuration.
        metadata: evaluator_name, duration_ms, field_durations_ms, evaluated_at.
    """

    field_results: dict[str, dict[str, Any]] = Field(default_factory=dict)
    configuration: dict[str, Any] = Field(
        default_factory=lambda: {"name": DEFAULT_CONFIGURATION, "params": {}}
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def configuration_name(self) -> str:
        return str(self.configuration.get("name", DEFAULT_CONFIGURATION))

    @property
    def passed(self) -> bool:
        """True when there are no fields or no field is labelled bad."""
        return all(result_passed(r) for r in self.field_results.values())

    @property
    def overall_quality(self) -> str:
        """
        Quality label over the label distribution, checked in this order:

        1. more than half good -> good
        2. no bad and at least one good -> average
        3. good + average at least half -> average
        4. otherwise -> bad
        """
        total = len(self.field_results)
        if total == 0:
            return Label.GOOD.value

        good = len(self.good_fields)
        average = len(self.average_fields)
        bad = len(self.bad_fields)

        if good / total > 0.5:
            return Label.GOOD.value
        if bad == 0 and good >= 1:
            return Label.AVERAGE.value
        if (good + average) / total >= 0.5:
            return Label.AVERAGE.value
        return Label.BAD.value

    def _fields_labelled(self, label: Label) -> list[str]:
        return [name for name, r in self.field_results.items() if label_of(r) == label.value]

    @property
    def good_fields(self) -> list[str]:
        return self._fields_labelled(Label.GOOD)

    @property
    def average_fields(self) -> list[str]:
        return self._fields_labelled(Label.AVERAGE)

    @property
    def bad_fields(self) -> list[str]:
        return self._fields_labelled(Label.BAD)

    @property
    def passed_fields(self) -> list[str]:
        return [name for name, r in self.field_results.items() if result_passed(r)]

    @property
    def failed_fields(self) -> list[str]:
        return [name for name, r in self.field_results.items() if not result_passed(r)]

    def field_score(self, field: str) -> float | None:
        result = self.field_results.get(field)
        return None if result is None else result.get("score")

    @property
    def scores(self) -> dict[str, float]:
        return {
            name: r["score"] for name, r in self.field_results.items() if r.get("score") is not None
        }

    @property
    def average_score(self) -> float | None:
        scores = list(self.scores.values())
        return sum(scores) / len(scores) if scores else None

    @property
    def min_score(self) -> float | None:
        return min(self.scores.values(), default=None)

    @property
    def max_score(self) -> float | None:
        return max(self.scores.values(), default=None)

    def summary(self) -> dict[str, Any]:
        return {
            "configuration": self.configuration_name,
            "passed": self.passed,
            "overall_quality": self.overall_quality,
            "total_fields": len(self.field_results),
            "good": len(self.good_fields),
            "average": len(self.average_fields),
            "bad": len(self.bad_fields),
            "average_score": self.average_score,
            "min_score": self.min_score,
            "max_score": self.max_score,
        }

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible form; from_dict() restores an equivalent result."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EvaluationResult":
        return cls.model_validate(data)
