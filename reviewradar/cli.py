"""
Review Radar CLI
================

Command-line interface for grading an already-collected review snapshot.

Commands:
    analyze     - Grade a review snapshot (optionally fused with an AI judgment)
    grade       - Map a score to its letter grade

Snapshot format (JSON):
    [ {review}, ... ]
    or
    {"product": {"ratingDistribution": {"5": 62, ...}}, "reviews": [ {review}, ... ]}

Usage:
    python -m reviewradar.cli analyze snapshot.json
    python -m reviewradar.cli analyze snapshot.json --judgment ai.json --json
    python -m reviewradar.cli grade 74 --label
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .config import get_settings
from .logging_config import configure_from_settings
from .reviews.review_models import ProductSummary, Review
from .scoring.trust_scorer import TrustScorer
from .scoring.fusion import TrustReport, grade_label, score_to_grade

logger = logging.getLogger(__name__)


def _read_json(path: str) -> Any:
    with open(Path(path), encoding="utf-8") as f:
        return json.load(f)


def load_snapshot(data: Any) -> Tuple[List[Review], ProductSummary]:
    """
    Split a decoded snapshot into normalized reviews and product summary.

    Raises:
        ValueError: If the snapshot, its reviews or its product has the wrong shape
    """
    if isinstance(data, list):
        raw_reviews, raw_product = data, None
    elif isinstance(data, dict):
        raw_reviews, raw_product = data.get("reviews") or [], data.get("product")
    else:
        raise ValueError("Snapshot must be a list of reviews or an object with 'reviews'")
    if not isinstance(raw_reviews, list):
        raise ValueError(f"'reviews' must be a list, got {type(raw_reviews).__name__}")

    reviews = []
    skipped = 0
    for index, item in enumerate(raw_reviews):
        review = Review.from_dict(item, index) if isinstance(item, dict) else None
        if review is None:
            skipped += 1
            continue
        reviews.append(review)

    if skipped:
        logger.warning(f"Skipped {skipped} review record(s) without body text")

    return reviews, ProductSummary.from_dict(raw_product)


def print_report(report: TrustReport) -> None:
    analysis = report.analysis
    print("=" * 60)
    print("REVIEW RADAR TRUST REPORT")
    print("=" * 60)
    print(f"Reviews analyzed: {analysis.review_count}")
    print(f"Mode: {report.mode}")
    print(f"Pattern score: {analysis.score} ({analysis.grade})")
    if report.judgment is not None and report.judgment.is_usable:
        print(f"AI score: {report.judgment.aggregate_score:g} "
              f"(high risk: {report.judgment.high_risk_count})")
    print(f"Final score: {report.final_score}/100  Grade: {report.final_grade} ({report.final_label})")
    print()

    if analysis.signals:
        print("Signals:")
        for name, signal in analysis.signals.items():
            marker = "!" if signal.suspicious else " "
            print(f"  {marker} {name.value:<20} {signal.raw_score:>3}")
        print()

    flags = report.flags
    if flags:
        print("Suspicious patterns:")
        for flag in flags:
            print(f"  - {flag}")
    else:
        print("No suspicious patterns detected.")


def cmd_analyze(args) -> int:
    """Grade a review snapshot."""
    settings = get_settings()
    try:
        reviews, product = load_snapshot(_read_json(args.snapshot))
        judgment = None
        if args.judgment and settings.use_external_judgment and not args.no_ai:
            judgment = _read_json(args.judgment)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        print(f"ERROR: Failed to load input: {e}", file=sys.stderr)
        return 1

    scorer = TrustScorer()
    report = scorer.evaluate(reviews, product, judgment)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False, default=str))
    else:
        print_report(report)
    return 0


def cmd_grade(args) -> int:
    """Map a score to its grade."""
    grade = score_to_grade(args.score)
    print(f"{grade} {grade_label(grade)}" if args.label else grade)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reviewradar",
        description="Grade the trustworthiness of a product review set",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Grade a review snapshot")
    analyze.add_argument("snapshot", help="JSON file with reviews (and optional product)")
    analyze.add_argument("--judgment", help="JSON file with an external AI judgment")
    analyze.add_argument("--no-ai", action="store_true", help="Ignore any external judgment")
    analyze.add_argument("--json", action="store_true", help="Print the report as JSON")
    analyze.set_defaults(func=cmd_analyze)

    grade = subparsers.add_parser("grade", help="Map a 0-100 score to a grade")
    grade.add_argument("score", type=int)
    grade.add_argument("--label", action="store_true", help="Also print the grade description")
    grade.set_defaults(func=cmd_grade)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_from_settings(get_settings().logging, verbose=args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
