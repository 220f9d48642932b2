"""
Review Radar
============

Trust grading for product review sets: four deterministic signals
(rating distribution, Verified Purchase ratio, review bursts, similar
phrasing) fused into an A-F grade, optionally blended with an external
AI judgment.

Usage:
    from reviewradar import Review, analyze_reviews

    report = analyze_reviews(reviews, product={5: 62, 4: 20, 3: 8, 2: 4, 1: 6})
    print(report.final_grade, report.flags)
"""

from .ai import ExternalJudgment
from .reviews import AnalysisResult, ProductSummary, Review, SignalName, SignalResult
from .scoring import TrustReport, TrustScorer, analyze_reviews, grade_label, score_to_grade

__version__ = "1.0.0"

__all__ = [
    "AnalysisResult",
    "ExternalJudgment",
    "ProductSummary",
    "Review",
    "SignalName",
    "SignalResult",
    "TrustReport",
    "TrustScorer",
    "analyze_reviews",
    "grade_label",
    "score_to_grade",
]
