"""Unit tests for EvaluationResult aggregation."""

import pytest

from verdict_core.evals.result import EvaluationResult


def field(label, score=None):
    result = {"label": label, "passed": label != "bad", "message": label}
    if score is not None:
        result["score"] = score
    return result


class TestOverallQuality:
    """Tests for overall_quality precedence."""

    def test_majority_good(self):
        result = EvaluationResult(
            field_results={"a": field("good"), "b": field("good"), "c": field("bad")}
        )

        assert result.overall_quality == "good"

    def test_no_bad_with_a_good_is_average(self):
        result = EvaluationResult(
            field_results={"a": field("good"), "b": field("average"), "c": field("average")}
        )

        assert result.overall_quality == "average"

    def test_half_passing_is_average(self):
        result = EvaluationResult(
            field_results={
                "a": field("good"),
                "b": field("average"),
                "c": field("bad"),
                "d": field("bad"),
            }
        )

        assert result.overall_quality == "average"

    def test_mostly_bad(self):
        result = EvaluationResult(
            field_results={"a": field("average"), "b": field("bad"), "c": field("bad")}
        )

        assert result.overall_quality == "bad"

    def test_only_average_fields(self):
        """No good and no bad still reaches the half-passing rule."""
        result = EvaluationResult(field_results={"a": field("average")})

        assert result.overall_quality == "average"

    def test_empty_result(self):
        result = EvaluationResult()

        assert result.overall_quality == "good"
        assert result.passed is True


class TestAggregates:
    """Tests for pass and score aggregates."""

    def test_passed_requires_no_bad_field(self):
        assert EvaluationResult(field_results={"a": field("good"), "b": field("average")}).passed
        assert not EvaluationResult(field_results={"a": field("good"), "b": field("bad")}).passed

    def test_field_partitions(self, result):
        assert result.good_fields == ["output"]
        assert result.average_fields == ["tokens"]
        assert result.bad_fields == ["latency"]
        assert result.passed_fields == ["output", "tokens"]
        assert result.failed_fields == ["latency"]

    def test_scores_skip_unscored_fields(self, result):
        assert result.scores == {"output": 0.9, "tokens": 0.6}
        assert result.field_score("latency") is None
        assert result.field_score("missing") is None

    def test_score_stats(self, result):
        assert result.average_score == pytest.approx(0.75)
        assert result.min_score == 0.6
        assert result.max_score == 0.9

    def test_summary(self, result):
        summary = result.summary()

        assert summary["configuration"] == "gpt-4o"
        assert summary["total_fields"] == 3
        assert summary["bad"] == 1
        assert summary["passed"] is False

    def test_default_configuration(self):
        assert EvaluationResult().configuration_name == "default"


class TestSerialization:
    """Tests for dict conversion."""

    def test_to_dict_and_back(self, result):
        restored = EvaluationResult.from_dict(result.to_dict())

        assert restored == result
        assert restored.overall_quality == result.overall_quality

    def test_is_frozen(self, result):
        with pytest.raises(Exception):
            result.metadata = {}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def result():
    return EvaluationResult(
        field_results={
            "output": field("good", 0.9),
            "tokens": field("average", 0.6),
            "latency": field("bad"),
        },
        configuration={"name": "gpt-4o", "params": {"temperature": 0}},
        metadata={"evaluator_name": "quality_check"},
    )
