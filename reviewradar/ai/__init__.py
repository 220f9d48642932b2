"""
Review Radar AI Judgment
========================

Normalized shape of an external language-model trust judgment.
The provider call is made by the caller; this package only validates
and aggregates what comes back.
"""

from .judgment import (
    ExternalJudgment,
    ReviewTrustScore,
    coerce_judgment,
    parse_judgment_content,
)

__all__ = [
    "ExternalJudgment",
    "ReviewTrustScore",
    "coerce_judgment",
    "parse_judgment_content",
]
