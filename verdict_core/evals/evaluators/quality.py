"""
Quality evaluators for text outputs.

- semantic_similarity: closeness to an expected text or the baseline output
- coherence: sentence-level structure heuristics
- relevance: keyword overlap with the query
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Any

from ..base import Evaluator
from ..field_context import FieldContext

WORD_PATTERN = re.compile(r"[a-z0-9']+")
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]?")
STOP_WORDS = frozenset(
    "a an and are as at be by for from has have how i in is it of on or that the this to was what "
    "when where which who why will with you your".split()
)


def tokenize(text: Any) -> list[str]:
    return WORD_PATTERN.findall(str(text).lower())


def jaccard(left: set[str], right: set[str]) -> float:
    if not left and not right:
        return 1.0
    return len(left & right) / len(left | right)


class SemanticSimilarityEvaluator(Evaluator):
    """
    Lexical similarity between the output and a reference text.

    The reference is the `expected` option, or the field's baseline value.
    Score is the mean of token-set Jaccard and character sequence ratio.
    """

    evaluator_name = "semantic_similarity"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        output = str(field_context.value or "")
        reference = options.get("expected")
        source = "expected"
        if reference is None:
            reference = field_context.baseline_value
            source = "baseline"
        if reference is None:
            return {
                "label": "bad",
                "score": 0.0,
                "message": f"No reference text to compare {field_context.field_name} against",
                "details": {"reference_source": None},
            }

        reference = str(reference)
        token_score = jaccard(set(tokenize(output)), set(tokenize(reference)))
        char_score = SequenceMatcher(None, output.lower(), reference.lower()).ratio()
        score = round((token_score + char_score) / 2, 4)

        threshold = options.get("threshold", 0.8)
        return {
            "label": self.calculate_label(score, threshold, options.get("threshold_average", threshold * 0.75)),
            "score": score,
            "details": {
                "reference_source": source,
                "token_overlap": round(token_score, 4),
                "sequence_ratio": round(char_score, 4),
                "threshold": threshold,
            },
            "message": f"Similarity to {source}: {score:.2f}",
        }


class CoherenceEvaluator(Evaluator):
    """
    Structural coherence heuristics.

    Penalizes empty output, sentences outside the word-count bounds and
    repeated sentences.
    """

    evaluator_name = "coherence"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        text = str(field_context.value or "").strip()
        min_words = options.get("min_words", 3)
        max_words = options.get("max_words", 60)

        sentences = [s.strip() for s in SENTENCE_PATTERN.findall(text) if s.strip()]
        if not sentences:
            return {"label": "bad", "score": 0.0, "message": "Output is empty", "details": {"sentences": 0}}

        lengths = [len(tokenize(s)) for s in sentences]
        out_of_bounds = sum(1 for n in lengths if n < min_words or n > max_words)
        normalized = [s.lower() for s in sentences]
        repeated = len(normalized) - len(set(normalized))

        score = 1.0 - 0.5 * (out_of_bounds / len(sentences)) - 0.5 * (repeated / len(sentences))
        score = round(max(score, 0.0), 4)

        return {
            "label": self.calculate_label(score),
            "score": score,
            "details": {
                "sentences": len(sentences),
                "out_of_bounds_sentences": out_of_bounds,
                "repeated_sentences": repeated,
            },
            "message": f"{len(sentences)} sentences, {out_of_bounds} badly sized, {repeated} repeated",
        }


class RelevanceEvaluator(Evaluator):
    """
    Share of the query's content words that appear in the output.

    The query is the `query` option or the record field named by
    `query_field` (default "input").
    """

    evaluator_name = "relevance"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        query = options.get("query")
        if query is None:
            query = field_context[options.get("query_field", "input")]

        keywords = {w for w in tokenize(query) if w not in STOP_WORDS}
        output_words = set(tokenize(field_context.value))
        if not keywords:
            return {"label": "average", "score": 0.5, "message": "Query has no content words", "details": {}}

        matched = sorted(keywords & output_words)
        score = round(len(matched) / len(keywords), 4)

        return {
            "label": self.calculate_label(score, options.get("threshold", 0.7), options.get("threshold_average", 0.4)),
            "score": score,
            "details": {"matched_keywords": matched, "missing_keywords": sorted(keywords - output_words)},
            "message": f"{len(matched)}/{len(keywords)} query keywords addressed",
        }
