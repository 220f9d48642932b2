"""
Review Radar Review Models
==========================

Normalized review records and the result structures of the scoring engine.

Modules:
    review_models: Review, ProductSummary, SignalResult, AnalysisResult
"""

from .review_models import (
    AnalysisResult,
    ProductSummary,
    Review,
    SignalName,
    SignalResult,
)

__all__ = [
    "AnalysisResult",
    "ProductSummary",
    "Review",
    "SignalName",
    "SignalResult",
]
