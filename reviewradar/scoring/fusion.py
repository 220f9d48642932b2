"""
External-judgment fusion.

The local pattern score is advisory-combined with an external AI judgment:
    fused = round(pattern * 0.4 + external * 0.6)

A missing, errored or malformed judgment leaves the pattern score as is.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..ai.judgment import ExternalJudgment, coerce_judgment
from ..reviews.review_models import AnalysisResult
from ..utils import round_half_up
from .scoring_config import CompositeConfig, FusionConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)

MODE_PATTERN = "pattern"
MODE_PATTERN_AI = "pattern+ai"


def score_to_grade(score: int, config: CompositeConfig = DEFAULT_CONFIG.composite) -> str:
    """Map a 0-100 score to A/B/C/D/F."""
    for minimum, grade in config.grade_thresholds:
        if score >= minimum:
            return grade
    return config.grade_thresholds[-1][1]


def grade_label(grade: str, config: CompositeConfig = DEFAULT_CONFIG.composite) -> str:
    """Human description of a grade ('' for an unknown grade)."""
    return config.grade_labels.get(grade, "")


def combine_scores(
    pattern_score: int,
    judgment: Any,
    config: FusionConfig = DEFAULT_CONFIG.fusion,
) -> int:
    """
    Blend the composite score with an external judgment.

    Args:
        pattern_score: Composite score from the signal detectors (0-100).
        judgment: ExternalJudgment, mapping of the same shape, or None.

    Returns:
        Fused score, or pattern_score unchanged when the judgment is unusable.
    """
    judgment = coerce_judgment(judgment)
    if judgment is None or not judgment.is_usable:
        return pattern_score
    return round_half_up(
        pattern_score * config.pattern_weight + judgment.aggregate_score * config.external_weight
    )


@dataclass
class TrustReport:
    """
    Final trust verdict for a review set.

    Holds the pattern analysis, the judgment it was fused with (if any)
    and the final score/grade/label recomputed from the fused score.
    """
    analysis: AnalysisResult
    final_score: int
    final_grade: str
    final_label: str = ""
    judgment: Optional[ExternalJudgment] = None
    suspicious_grades: tuple = field(default=("D", "F"), repr=False)

    @property
    def mode(self) -> str:
        if self.judgment is not None and self.judgment.is_usable:
            return MODE_PATTERN_AI
        return MODE_PATTERN

    @property
    def flags(self) -> List[str]:
        """Pattern flags followed by the judgment's own flags."""
        extra = self.judgment.flags if self.judgment is not None else []
        return list(self.analysis.flags) + list(extra)

    @property
    def is_suspicious(self) -> bool:
        return self.final_grade in self.suspicious_grades

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "finalScore": self.final_score,
            "finalGrade": self.final_grade,
            "finalLabel": self.final_label,
            "mode": self.mode,
            "flags": self.flags,
            "isSuspicious": self.is_suspicious,
            "pattern": self.analysis.to_dict(),
        }
        if self.judgment is not None:
            data["ai"] = self.judgment.to_dict()
        return data


def fuse(
    analysis: AnalysisResult,
    judgment: Any = None,
    fusion_config: FusionConfig = DEFAULT_CONFIG.fusion,
    composite_config: CompositeConfig = DEFAULT_CONFIG.composite,
) -> TrustReport:
    """Fuse a pattern analysis with an optional external judgment."""
    judgment = coerce_judgment(judgment)

    if judgment is not None and judgment.error:
        logger.warning(f"External judgment unavailable, using pattern score only: {judgment.error}")

    final_score = combine_scores(analysis.score, judgment, fusion_config)
    final_grade = score_to_grade(final_score, composite_config)

    if final_score != analysis.score:
        logger.info(
            "Fused pattern score %d with external %s -> %d (%s)",
            analysis.score, judgment.aggregate_score, final_score, final_grade,
            extra={"score": final_score, "grade": final_grade},
        )

    return TrustReport(
        analysis=analysis,
        final_score=final_score,
        final_grade=final_grade,
        final_label=grade_label(final_grade, composite_config),
        judgment=judgment,
        suspicious_grades=fusion_config.suspicious_grades,
    )
