#!/usr/bin/env python3
"""
Run offline evaluations against a dataset.

Each JSONL line is one case:
    {"id": "case-1", "evaluator": "refusal", "field": "output",
     "options": {"expect_refusal": true}, "record": {"output": "..."}}

Usage:
    python scripts/run_evals.py --dataset evals/data/sample.jsonl
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from loguru import logger

from verdict_core.domain.exceptions import VerdictError
from verdict_core.evals import EvaluationResult, define, evaluate
from verdict_core.logging import setup_logging


def run_case(case: dict[str, Any]) -> EvaluationResult:
    """Evaluate one dataset case with a single-field, single-evaluator definition."""
    field = case.get("field", "output")
    evaluator = case["evaluator"]
    options = case.get("options") or {}

    def configure(d):
        d.evaluate_field(field).add(evaluator, **options)

    definition = define(f"dataset:{case.get('id', evaluator)}", configure)
    return evaluate(case.get("record") or {}, definition)


def run_evals(dataset_path: str) -> list[dict[str, Any]]:
    print(f"Loading dataset from {dataset_path}...")

    results = []
    with open(dataset_path, "r") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            case = json.loads(line)
            case_id = case.get("id", f"line-{line_number}")

            try:
                result = run_case(case)
            except VerdictError as e:
                logger.error(f"Case {case_id} could not be evaluated: {e}")
                results.append({"case": case_id, "evaluator": case.get("evaluator"), "passed": False, "error": str(e)})
                continue

            field_result = next(iter(result.field_results.values()))
            results.append(
                {
                    "case": case_id,
                    "evaluator": case.get("evaluator"),
                    "passed": result.passed,
                    "label": result.overall_quality,
                    "score": field_result.get("score"),
                    "message": field_result.get("message"),
                }
            )

            status = "PASS" if result.passed else "FAIL"
            print(
                f"{status} | {case_id:<12} | {case.get('evaluator'):<20} | "
                f"{result.overall_quality:<7} | Score: {field_result.get('score')} | {field_result.get('message')}"
            )

    total = len(results)
    passed = sum(1 for r in results if r["passed"])
    print("-" * 50)
    if total:
        print(f"Run Complete. Passed: {passed}/{total} ({passed / total * 100:.1f}%)")
    else:
        print("Run Complete. No cases found.")
    return results


def main():
    parser = argparse.ArgumentParser(description="Run offline evaluations against a JSONL dataset")
    parser.add_argument("--dataset", required=True, help="Path to JSONL dataset")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    args = parser.parse_args()

    setup_logging(args.log_level)
    try:
        results = run_evals(args.dataset)
    except FileNotFoundError:
        print(f"Dataset file not found: {args.dataset}")
        sys.exit(1)

    sys.exit(0 if all(r["passed"] for r in results) else 1)


if __name__ == "__main__":
    main()
