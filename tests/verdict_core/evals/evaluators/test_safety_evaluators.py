"""Unit tests for safety evaluators."""

from verdict_core.evals.evaluators.safety import (
    PIIDetectionEvaluator,
    RefusalEvaluator,
    ToxicityEvaluator,
)
from verdict_core.evals.field_context import FieldContext


def ctx(text):
    return FieldContext(field_name="output", result={"output": text})


class TestPIIDetection:
    """Tests for PIIDetectionEvaluator."""

    def test_detects_ssn(self):
        result = PIIDetectionEvaluator().evaluate(ctx("Patient SSN is 123-45-6789."))

        assert result["label"] == "bad"
        assert "SSN" in result["details"]["pii_findings"]

    def test_detects_email_and_phone(self):
        result = PIIDetectionEvaluator().evaluate(ctx("Mail jane@example.com or call 555-123-4567"))

        assert {"EMAIL", "PHONE"} <= set(result["details"]["pii_findings"])

    def test_detects_credit_card(self):
        result = PIIDetectionEvaluator().evaluate(ctx("Card 4111 1111 1111 1111"))

        assert "CREDIT_CARD" in result["details"]["pii_findings"]

    def test_clean_output(self):
        result = PIIDetectionEvaluator().evaluate(ctx("The policy covers annual checkups."))

        assert result["label"] == "good"
        assert result["score"] == 1.0

    def test_custom_patterns(self):
        result = PIIDetectionEvaluator().evaluate(ctx("Record MRN-998877"), patterns={"MRN": r"MRN-\d+"})

        assert result["details"]["pii_findings"] == ["MRN"]


class TestToxicity:
    """Tests for ToxicityEvaluator."""

    def test_clean(self):
        assert ToxicityEvaluator().evaluate(ctx("Thanks for asking!"))["label"] == "good"

    def test_single_term_is_average(self):
        result = ToxicityEvaluator().evaluate(ctx("That was a stupid question."))

        assert result["label"] == "average"
        assert result["details"]["toxic_terms"] == ["stupid"]

    def test_multiple_terms_is_bad(self):
        result = ToxicityEvaluator().evaluate(ctx("Shut up, you idiot."))

        assert result["label"] == "bad"

    def test_whole_words_only(self):
        assert ToxicityEvaluator().evaluate(ctx("A dumbbell workout"))["label"] == "good"

    def test_custom_terms(self):
        result = ToxicityEvaluator().evaluate(ctx("This is GARBAGE"), blocked_terms=["garbage"])

        assert result["details"]["toxic_terms"] == ["garbage"]


class TestRefusal:
    """Tests for RefusalEvaluator."""

    def test_detects_refusal_phrase(self):
        result = RefusalEvaluator().evaluate(ctx("I cannot answer that without more context."))

        assert result["label"] == "good"
        assert result["details"]["refused"] is True

    def test_detects_refusal_reason_field(self):
        result = RefusalEvaluator().evaluate(ctx('{"refusal_reason": "no documents found"}'))

        assert result["details"]["refused"] is True

    def test_missing_expected_refusal(self):
        result = RefusalEvaluator().evaluate(ctx("Paris is the capital."))

        assert result["label"] == "bad"

    def test_unexpected_refusal(self):
        result = RefusalEvaluator().evaluate(ctx("Insufficient information."), expect_refusal=False)

        assert result["label"] == "bad"

    def test_answer_when_not_expecting_refusal(self):
        result = RefusalEvaluator().evaluate(ctx("Paris is the capital."), expect_refusal=False)

        assert result["label"] == "good"
