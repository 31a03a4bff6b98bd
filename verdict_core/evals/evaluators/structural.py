"""
Structural evaluators: JSON, format, length and citations.
"""

from __future__ import annotations

import json
import re
from typing import Any

from ..base import Evaluator
from ..field_context import FieldContext


class JsonValidityEvaluator(Evaluator):
    """
    Output must be JSON (a string that parses, or an already decoded
    object). `required_keys` lists keys the top-level object must carry.
    """

    evaluator_name = "json_validity"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        value = field_context.value
        if isinstance(value, (str, bytes)):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as e:
                return {
                    "label": "bad",
                    "score": 0.0,
                    "message": f"Invalid JSON: {e.msg} at position {e.pos}",
                    "details": {"valid_json": False},
                }

        required = list(options.get("required_keys", []))
        if not required:
            return {"label": "good", "score": 1.0, "message": "Valid JSON", "details": {"valid_json": True}}

        present = value.keys() if isinstance(value, dict) else ()
        missing = [key for key in required if key not in present]
        score = round((len(required) - len(missing)) / len(required), 4)

        return {
            "label": "good" if not missing else ("average" if score >= 0.5 else "bad"),
            "score": score,
            "message": "Valid JSON with all required keys" if not missing else f"Missing keys: {missing}",
            "details": {"valid_json": True, "missing_keys": missing},
        }


class FormatComplianceEvaluator(Evaluator):
    """Output must match the regex `pattern` (searched, or fully matched with `full_match`)."""

    evaluator_name = "format_compliance"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        pattern = options.get("pattern")
        if not pattern:
            raise ValueError("format_compliance requires a 'pattern' option")

        text = str(field_context.value)
        flags = re.IGNORECASE if options.get("ignore_case") else 0
        matcher = re.fullmatch if options.get("full_match") else re.search
        matched = matcher(pattern, text, flags) is not None

        return {
            "label": "good" if matched else "bad",
            "score": 1.0 if matched else 0.0,
            "message": f"Output {'matches' if matched else 'does not match'} {pattern!r}",
            "details": {"pattern": pattern, "matched": matched},
        }


class LengthConstraintEvaluator(Evaluator):
    """Length in `unit` ("chars" or "words") within [min_length, max_length]."""

    evaluator_name = "length_constraint"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        text = str(field_context.value or "")
        unit = options.get("unit", "chars")
        length = len(text.split()) if unit == "words" else len(text)
        min_length = options.get("min_length", 0)
        max_length = options.get("max_length")

        within = length >= min_length and (max_length is None or length <= max_length)
        bounds = f"[{min_length}, {max_length if max_length is not None else 'inf'}]"

        return {
            "label": "good" if within else "bad",
            "score": 1.0 if within else 0.0,
            "message": f"Length {length} {unit} {'within' if within else 'outside'} {bounds}",
            "details": {"length": length, "unit": unit, "min_length": min_length, "max_length": max_length},
        }


class CitationEvaluator(Evaluator):
    """
    Evaluates if answers contain source citations.
    Expects [SOURCE: ...] by default; `pattern` overrides, `min_citations` sets the floor.
    """

    evaluator_name = "citation"

    CITATION_PATTERN = r"\[SOURCE:\s*[a-zA-Z0-9_\-]+\]"

    def evaluate(self, field_context: FieldContext, **options: Any) -> dict[str, Any]:
        pattern = options.get("pattern", self.CITATION_PATTERN)
        min_citations = options.get("min_citations", 1)
        matches = re.findall(pattern, str(field_context.value or ""))

        if len(matches) >= min_citations:
            return {
                "label": "good",
                "score": 1.0,
                "message": f"Found {len(matches)} citations",
                "details": {"citations": matches},
            }

        return {
            "label": "bad",
            "score": round(len(matches) / min_citations, 4) if min_citations else 0.0,
            "message": f"Found {len(matches)} citations, expected at least {min_citations}",
            "details": {"citations": matches},
        }
