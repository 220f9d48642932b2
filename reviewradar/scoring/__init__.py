"""
Review Radar Scoring Module
===========================

Deterministic trust scoring for product review sets.

Components:
    - review_signals: the four independent signal detectors
    - TrustScorer: composite score + grade
    - fuse / combine_scores: optional blend with an external AI judgment

Usage:
    from reviewradar.scoring import TrustScorer

    scorer = TrustScorer()
    report = scorer.evaluate(reviews, product, judgment)

    print(report.final_score)
    print(report.final_grade)
"""

from .scoring_config import (
    ScoringConfig,
    DEFAULT_CONFIG,
)
from .review_signals import (
    SIGNAL_DETECTORS,
    analyze_burst,
    analyze_rating_distribution,
    analyze_similarity,
    analyze_verified_purchase,
    run_signals,
)
from .fusion import (
    TrustReport,
    combine_scores,
    fuse,
    grade_label,
    score_to_grade,
)
from .trust_scorer import (
    TrustScorer,
    analyze_reviews,
)

__all__ = [
    # Config
    "ScoringConfig",
    "DEFAULT_CONFIG",
    # Signals
    "SIGNAL_DETECTORS",
    "analyze_burst",
    "analyze_rating_distribution",
    "analyze_similarity",
    "analyze_verified_purchase",
    "run_signals",
    # Composite + fusion
    "TrustScorer",
    "TrustReport",
    "analyze_reviews",
    "combine_scores",
    "fuse",
    "grade_label",
    "score_to_grade",
]
