"""
Unit tests for LLMJudgeEvaluator and MultiJudgeEvaluator.

The OpenAI client is mocked; no network calls are made.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from verdict_core.evals.evaluators.llm_judge import LLMJudgeEvaluator, MultiJudgeEvaluator
from verdict_core.evals.field_context import FieldContext


class TestLLMJudge:
    """Tests for grading through the chat completions API."""

    def test_parses_verdict(self, mock_openai, context):
        mock_openai["respond"]({"score": 0.9, "reasoning": "Accurate and concise."})

        result = LLMJudgeEvaluator().evaluate(context, criteria="Is it accurate?")

        assert result["label"] == "good"
        assert result["score"] == 0.9
        assert result["message"] == "Accurate and concise."
        assert result["details"]["criteria"] == "Is it accurate?"

    def test_request_shape(self, mock_openai, context):
        mock_openai["respond"]({"score": 0.5, "reasoning": "ok"})

        LLMJudgeEvaluator().evaluate(context, input_field="input", model="gpt-4o")

        kwargs = mock_openai["client"].chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["response_format"] == {"type": "json_object"}
        user_prompt = kwargs["messages"][1]["content"]
        assert "INPUT:\nWhat is the capital of France?" in user_prompt
        assert "OUTPUT:\nParis." in user_prompt

    def test_score_is_clamped(self, mock_openai, context):
        mock_openai["respond"]({"score": 1.7, "reasoning": "great"})

        assert LLMJudgeEvaluator().evaluate(context)["score"] == 1.0

    def test_custom_thresholds(self, mock_openai, context):
        mock_openai["respond"]({"score": 0.5, "reasoning": "fine"})

        result = LLMJudgeEvaluator().evaluate(context, threshold_good=0.5)

        assert result["label"] == "good"

    def test_unparseable_verdict(self, mock_openai, context):
        mock_openai["client"].chat.completions.create.return_value = _response("not json")

        with pytest.raises(ValueError):
            LLMJudgeEvaluator().evaluate(context)

    def test_missing_score(self, mock_openai, context):
        mock_openai["respond"]({"reasoning": "forgot the score"})

        with pytest.raises(ValueError):
            LLMJudgeEvaluator().evaluate(context)


class TestMultiJudge:
    """Tests for consensus across several judge models."""

    def test_majority_consensus(self, mock_openai, context):
        mock_openai["respond_by_model"](
            {"judge-a": {"score": 0.9, "reasoning": "good"}, "judge-b": {"score": 0.8, "reasoning": "fine"},
             "judge-c": {"score": 0.2, "reasoning": "wrong"}}
        )

        result = MultiJudgeEvaluator().evaluate(context, models=["judge-a", "judge-b", "judge-c"])

        assert result["label"] == "average"
        assert result["score"] == 0.6333
        assert result["details"]["positive_votes"] == 2
        assert result["details"]["negative_votes"] == 1
        assert result["details"]["agreement_ratio"] == 0.6667
        assert result["details"]["consensus"] is True
        assert result["details"]["needs_human_review"] is True
        assert [vote["model"] for vote in result["details"]["votes"]] == ["judge-a", "judge-b", "judge-c"]
        assert mock_openai["client"].chat.completions.create.call_count == 3

    def test_unanimous_agreement_is_good(self, mock_openai, context):
        mock_openai["respond"]({"score": 1.0, "reasoning": "perfect"})

        result = MultiJudgeEvaluator().evaluate(context, models=["judge-a", "judge-b", "judge-c"], strategy="unanimous")

        assert result["label"] == "good"
        assert result["score"] == 1.0
        assert result["details"]["agreement_ratio"] == 1.0
        assert result["details"]["needs_human_review"] is False

    def test_unanimous_fails_on_one_dissent(self, mock_openai, context):
        mock_openai["respond_by_model"](
            {"judge-a": {"score": 0.9, "reasoning": "good"}, "judge-b": {"score": 0.1, "reasoning": "bad"}}
        )

        result = MultiJudgeEvaluator().evaluate(context, models=["judge-a", "judge-b"], strategy="unanimous")

        assert result["label"] == "bad"
        assert result["details"]["consensus"] is False

    def test_weighted_vote(self, mock_openai, context):
        mock_openai["respond_by_model"](
            {"strong": {"score": 0.9, "reasoning": "good"}, "weak": {"score": 0.1, "reasoning": "bad"}}
        )

        result = MultiJudgeEvaluator().evaluate(
            context, models=["strong", "weak"], strategy="weighted", weights={"strong": 3, "weak": 1}
        )

        assert result["details"]["consensus"] is True
        assert result["score"] == 0.7
        assert [vote["weight"] for vote in result["details"]["votes"]] == [0.75, 0.25]

    def test_threshold_strategy(self, mock_openai, context):
        mock_openai["respond_by_model"](
            {"a": {"score": 0.9, "reasoning": ""}, "b": {"score": 0.9, "reasoning": ""},
             "c": {"score": 0.1, "reasoning": ""}}
        )

        strict = MultiJudgeEvaluator().evaluate(
            context, models=["a", "b", "c"], strategy="threshold", agreement_threshold=0.75
        )
        lenient = MultiJudgeEvaluator().evaluate(
            context, models=["a", "b", "c"], strategy="threshold", agreement_threshold=0.6
        )

        assert strict["label"] == "bad"
        assert lenient["details"]["consensus"] is True

    def test_split_vote_has_no_majority(self, mock_openai, context):
        mock_openai["respond_by_model"](
            {"a": {"score": 0.9, "reasoning": ""}, "b": {"score": 0.3, "reasoning": ""}}
        )

        result = MultiJudgeEvaluator().evaluate(context, models=["a", "b"])

        assert result["label"] == "bad"
        assert result["details"]["agreement_ratio"] == 0.5

    def test_requires_models(self, context):
        with pytest.raises(ValueError):
            MultiJudgeEvaluator().evaluate(context)

    def test_unknown_strategy(self, context):
        with pytest.raises(ValueError):
            MultiJudgeEvaluator().evaluate(context, models=["a"], strategy="plurality")


# =============================================================================
# Fixtures
# =============================================================================


def _response(content):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


@pytest.fixture
def mock_openai():
    """Patches the OpenAI client used by the judge."""
    with patch("verdict_core.evals.evaluators.llm_judge.get_openai_client") as mock_get_client:
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client

        def respond(payload):
            mock_client.chat.completions.create.return_value = _response(json.dumps(payload))

        def respond_by_model(payloads):
            mock_client.chat.completions.create.side_effect = lambda **kwargs: _response(
                json.dumps(payloads[kwargs["model"]])
            )

        yield {"client": mock_client, "respond": respond, "respond_by_model": respond_by_model}


@pytest.fixture
def context():
    return FieldContext(
        field_name="output",
        result={"input": "What is the capital of France?", "output": "Paris."},
    )
