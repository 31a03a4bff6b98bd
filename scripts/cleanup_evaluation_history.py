#!/usr/bin/env python3
"""
CLI utility to apply retention to stored evaluation runs.

A run is kept when it is within --retention-days OR among the newest
--retention-count runs; everything else is deleted.

Usage:
    python scripts/cleanup_evaluation_history.py --retention-days 30 --retention-count 100
"""

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from verdict_core.config import settings
from verdict_core.logging import setup_logging
from verdict_core.storage import get_historical_storage


def main():
    parser = argparse.ArgumentParser(description="Cleanup evaluation history")
    parser.add_argument(
        "--retention-days",
        type=int,
        default=settings.HISTORY_RETENTION_DAYS,
        help="Keep runs newer than this many days (defaults to settings.HISTORY_RETENTION_DAYS)",
    )
    parser.add_argument(
        "--retention-count",
        type=int,
        default=settings.HISTORY_RETENTION_COUNT,
        help="Keep the newest N runs (defaults to settings.HISTORY_RETENTION_COUNT)",
    )
    parser.add_argument("--evaluator", default=None, help="Only clean up runs of this evaluator")
    args = parser.parse_args()

    setup_logging()
    deleted = get_historical_storage().cleanup_retention(
        retention_days=args.retention_days,
        retention_count=args.retention_count,
        evaluator_name=args.evaluator,
    )
    print(
        json.dumps(
            {
                "deleted": deleted,
                "retention_days": args.retention_days,
                "retention_count": args.retention_count,
                "evaluator": args.evaluator,
                "backend": settings.HISTORY_BACKEND,
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    main()
