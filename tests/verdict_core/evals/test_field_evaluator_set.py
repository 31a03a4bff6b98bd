"""Unit tests for FieldEvaluatorSet."""

from unittest.mock import patch

import pytest

from verdict_core.domain.exceptions import (
    ConfigurationError,
    DuplicateAliasError,
    FieldNotFoundError,
    InvalidCombinationStrategyError,
    InvalidEvaluatorResultError,
    UnregisteredEvaluatorError,
)
from verdict_core.evals.base import Evaluator
from verdict_core.evals.field_context import FieldContext
from verdict_core.evals.field_evaluator_set import FieldEvaluatorSet
from verdict_core.evals.registry import EvaluatorRegistry


class TestConfiguration:
    """Tests for building a field's evaluator set."""

    def test_alias_defaults_to_evaluator_name(self):
        evaluators = FieldEvaluatorSet("output").add("fixed").add("fixed", alias="again")

        assert evaluators.aliases == ["fixed", "again"]

    def test_duplicate_alias_raises(self):
        evaluators = FieldEvaluatorSet("output").add("fixed")

        with pytest.raises(DuplicateAliasError):
            evaluators.add("other", alias="fixed")

    def test_options_are_stored(self):
        evaluators = FieldEvaluatorSet("output").add("fixed", label="bad", score=0.1)

        assert evaluators.evaluators[0].options == {"label": "bad", "score": 0.1}

    def test_default_strategy_is_and(self):
        assert FieldEvaluatorSet("output").combination_strategy == "and"

    def test_strategy_set_once(self):
        evaluators = FieldEvaluatorSet("output").combine_with("or")

        with pytest.raises(InvalidCombinationStrategyError):
            evaluators.combine_with("and")

    def test_frozen_set_rejects_changes(self):
        evaluators = FieldEvaluatorSet("output").add("fixed")
        evaluators.freeze()

        with pytest.raises(ConfigurationError):
            evaluators.add("other")

    def test_freeze_requires_evaluators(self):
        with pytest.raises(ConfigurationError):
            FieldEvaluatorSet("output").freeze()


class TestEvaluate:
    """Tests for running evaluators."""

    def test_and_combination(self, registry, context):
        evaluators = (
            FieldEvaluatorSet("output")
            .add("fixed", alias="similar", label="good", score=0.9)
            .add("fixed", alias="safe", label="bad", score=0.3)
        )

        combined = evaluators.evaluate(context, registry=registry)

        assert combined["passed"] is False
        assert combined["score"] == 0.3
        assert set(combined["evaluator_results"]) == {"similar", "safe"}

    def test_or_combination(self, registry, context):
        evaluators = (
            FieldEvaluatorSet("output")
            .add("fixed", alias="a", label="bad", score=0.2)
            .add("fixed", alias="b", label="average", score=0.6)
            .combine_with("or")
        )

        combined = evaluators.evaluate(context, registry=registry)

        assert combined["passed"] is True
        assert combined["score"] == 0.6

    def test_raising_evaluator_is_isolated(self, registry, context):
        evaluators = FieldEvaluatorSet("output").add("exploding").add("fixed", label="good", score=1.0)

        combined = evaluators.evaluate(context, registry=registry)

        failure = combined["evaluator_results"]["exploding"]
        assert failure["label"] == "bad"
        assert failure["score"] == 0.0
        assert failure["message"] == "Evaluator failed: boom"
        assert failure["details"]["error_class"] == "RuntimeError"
        assert len(failure["details"]["backtrace"]) <= 4
        assert combined["evaluator_results"]["fixed"]["label"] == "good"
        assert combined["passed"] is False

    def test_failure_is_logged(self, registry, context):
        evaluators = FieldEvaluatorSet("output").add("exploding")

        with patch("verdict_core.evals.field_evaluator_set.logger") as mock_logger:
            evaluators.evaluate(context, registry=registry)

        mock_logger.warning.assert_called_once()

    def test_invalid_result_propagates(self, registry, context):
        evaluators = FieldEvaluatorSet("output").add("fixed", label="excellent", score=0.5)

        with pytest.raises(InvalidEvaluatorResultError):
            evaluators.evaluate(context, registry=registry)

    def test_missing_field_propagates(self, registry, context):
        evaluators = FieldEvaluatorSet("output").add("reader")

        with pytest.raises(FieldNotFoundError):
            evaluators.evaluate(context, registry=registry)

    def test_unknown_evaluator_raises(self, registry, context):
        evaluators = FieldEvaluatorSet("output").add("fixd")

        with pytest.raises(UnregisteredEvaluatorError) as exc_info:
            evaluators.evaluate(context, registry=registry)

        assert "fixed" in exc_info.value.suggestions

    def test_options_reach_evaluator(self, registry, context):
        evaluators = FieldEvaluatorSet("output").add("fixed", label="average", score=0.7)

        combined = evaluators.evaluate(context, registry=registry)

        assert combined["evaluator_results"]["fixed"]["score"] == 0.7

    def test_combined_result_is_validated(self, registry, context):
        evaluators = FieldEvaluatorSet("output").add("fixed")
        malformed = {"label": "good", "score": 1.5, "message": "too high", "passed": True}

        with patch("verdict_core.evals.field_evaluator_set.combine", return_value=malformed):
            with pytest.raises(InvalidEvaluatorResultError) as exc_info:
                evaluators.evaluate(context, registry=registry)

        assert "output combination" in str(exc_info.value)


# =============================================================================
# Fixtures
# =============================================================================


class FixedEvaluator(Evaluator):
    evaluator_name = "fixed"

    def evaluate(self, field_context, **options):
        return {
            "label": options.get("label", "good"),
            "score": options.get("score", 1.0),
            "message": f"fixed result for {field_context.field_name}",
        }


class ExplodingEvaluator(Evaluator):
    evaluator_name = "exploding"

    def evaluate(self, field_context, **options):
        raise RuntimeError("boom")


class ReaderEvaluator(Evaluator):
    evaluator_name = "reader"

    def evaluate(self, field_context, **options):
        return {"label": "good", "message": field_context["does_not_exist"]}


@pytest.fixture
def registry():
    registry = EvaluatorRegistry()
    registry.register("fixed", FixedEvaluator)
    registry.register("exploding", ExplodingEvaluator)
    registry.register("reader", ReaderEvaluator)
    return registry


@pytest.fixture
def context():
    return FieldContext(field_name="output", result={"output": "The answer is 42."})
