"""
LLM-as-judge evaluators.

Asks OpenAI chat models to grade a field against a rubric and return
{"score": 0..1, "reasoning": "..."} as JSON.

- LLMJudgeEvaluator: one judge model
- MultiJudgeEvaluator: several judge models voting on pass/fail
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from verdict_core.config import settings
from verdict_core.infrastructure.openai_client import get_openai_client

from ..base import Evaluator
from ..field_context import FieldContext

JUDGE_SYSTEM_PROMPT = """You are a strict evaluator of AI system outputs.
Grade the OUTPUT against the CRITERIA. Respond with a JSON object:
{"score": <number between 0 and 1>, "reasoning": "<one or two sentences>"}"""

DEFAULT_CRITERIA = "Is the output accurate, relevant and well written?"

CONSENSUS_STRATEGIES = ("majority", "weighted", "unanimous", "threshold")


class LLMJudgeEvaluator(Evaluator):
    """
    Grades a field with an LLM.

    Options:
        criteria: Rubric given to the judge.
        input_field: Record path shown to the judge as the input (optional).
        model: Overrides settings.OPENAI_MODEL_ID.
        threshold_good / threshold_average: Label cutoffs for the returned score.
    """

    evaluator_name = "llm_judge"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        model = options.get("model", settings.OPENAI_MODEL_ID)
        criteria = options.get("criteria", DEFAULT_CRITERIA)

        verdict = self.request_verdict(field_context, model, criteria, options.get("input_field"))
        score = verdict["score"]

        return {
            "label": self.calculate_label(
                score,
                threshold_good=options.get("threshold_good"),
                threshold_average=options.get("threshold_average"),
            ),
            "score": score,
            "message": verdict["reasoning"] or f"LLM judge score {score}",
            "details": {"model": model, "criteria": criteria},
        }

    def request_verdict(
        self,
        field_context: FieldContext,
        model: str,
        criteria: str,
        input_field: str | None = None,
    ) -> dict[str, Any]:
        """
        Ask one judge model for a verdict.

        Returns:
            {"score": float in [0, 1] rounded to 4 places, "reasoning": str or None}

        Raises:
            ValueError: If the model does not answer with a JSON score.
        """
        client = get_openai_client()

        user_prompt = f"CRITERIA:\n{criteria}\n\n"
        if input_field and field_context.field_exists(input_field):
            user_prompt += f"INPUT:\n{field_context.get(input_field)}\n\n"
        user_prompt += f"OUTPUT:\n{field_context.value}"

        logger.debug(f"LLM judge ({model}) grading field '{field_context.field_name}'")

        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": JUDGE_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            temperature=settings.LLM_JUDGE_TEMPERATURE,
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content or ""
        try:
            verdict = json.loads(content)
            score = float(verdict["score"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ValueError(f"LLM judge ({model}) returned an unparseable verdict: {content[:200]!r}") from e

        return {
            "score": round(min(max(score, 0.0), 1.0), 4),
            "reasoning": verdict.get("reasoning"),
        }


class MultiJudgeEvaluator(LLMJudgeEvaluator):
    """
    Consensus of several judge models.

    Each model grades the field once; a judge votes pass when its score is
    at least `pass_score`. Votes are aggregated by `strategy`:

    - majority: more than half of the judges pass
    - weighted: weighted pass share beats the weighted fail share
      (`weights` maps model -> weight, default 1.0)
    - unanimous: every judge passes
    - threshold: the pass share is at least `agreement_threshold`

    Without consensus the label is bad. With consensus it is good when the
    (weighted) mean score reaches the good cutoff, average otherwise.

    When the share of judges on the winning side falls below
    `review_threshold`, the result is flagged for human review.

    Options:
        models: Judge model ids (required, at least one).
        strategy: One of majority, weighted, unanimous, threshold.
        criteria / input_field: As for llm_judge.
        pass_score: Vote cutoff (default settings.LABEL_THRESHOLD_AVERAGE).
        weights: Per-model weights for the weighted strategy.
        agreement_threshold: Pass share needed by the threshold strategy (0.66).
        review_threshold: Agreement below which review is flagged (0.75).
        threshold_good: Good cutoff for the mean score.
    """

    evaluator_name = "multi_judge"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        models = list(options.get("models") or [])
        if not models:
            raise ValueError("multi_judge requires a non-empty 'models' option")

        strategy = str(options.get("strategy", "majority")).lower()
        if strategy not in CONSENSUS_STRATEGIES:
            raise ValueError(
                f"Unknown multi_judge strategy {strategy!r}; expected one of {', '.join(CONSENSUS_STRATEGIES)}"
            )

        criteria = options.get("criteria", DEFAULT_CRITERIA)
        pass_score = options.get("pass_score", settings.LABEL_THRESHOLD_AVERAGE)
        weights = options.get("weights") or {}

        votes = []
        for model in models:
            verdict = self.request_verdict(field_context, model, criteria, options.get("input_field"))
            votes.append(
                {
                    "model": model,
                    "score": verdict["score"],
                    "passed": verdict["score"] >= pass_score,
                    "reasoning": verdict["reasoning"],
                    "weight": float(weights.get(model, 1.0)) if strategy == "weighted" else 1.0,
                }
            )

        total = len(votes)
        positive = sum(1 for vote in votes if vote["passed"])
        agreement = round(max(positive, total - positive) / total, 4)

        total_weight = sum(vote["weight"] for vote in votes)
        if total_weight <= 0 or any(vote["weight"] < 0 for vote in votes):
            raise ValueError("multi_judge weights must be non-negative and sum to a positive number")
        shares = [vote["weight"] / total_weight for vote in votes]

        weighted_positive = sum(share for share, vote in zip(shares, votes) if vote["passed"])
        weighted_negative = 1.0 - weighted_positive
        score = round(sum(share * vote["score"] for share, vote in zip(shares, votes)), 4)
        for share, vote in zip(shares, votes):
            vote["weight"] = round(share, 4)

        if strategy == "weighted":
            consensus = weighted_positive > weighted_negative
        elif strategy == "unanimous":
            consensus = positive == total
        elif strategy == "threshold":
            consensus = positive / total >= options.get("agreement_threshold", 0.66)
        else:
            consensus = positive > total / 2

        threshold_good = options.get("threshold_good", settings.LABEL_THRESHOLD_GOOD)
        if not consensus:
            label = "bad"
        else:
            label = "good" if score >= threshold_good else "average"

        needs_review = agreement < options.get("review_threshold", 0.75)
        if needs_review:
            logger.info(
                f"Judges disagree on field '{field_context.field_name}': "
                f"{positive}/{total} passed (agreement {agreement})"
            )

        return {
            "label": label,
            "score": score,
            "message": (
                f"{positive}/{total} judges passed ({strategy}); "
                f"consensus {'reached' if consensus else 'not reached'}"
            ),
            "details": {
                "strategy": strategy,
                "criteria": criteria,
                "votes": votes,
                "positive_votes": positive,
                "negative_votes": total - positive,
                "total_judges": total,
                "agreement_ratio": agreement,
                "consensus": consensus,
                "needs_human_review": needs_review,
            },
        }
