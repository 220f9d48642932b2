"""
Review Radar Trust Scorer - deterministic review trust grading.

Runs the four signal detectors over a review snapshot, fuses their raw
scores into a 0-100 composite and maps it to a letter grade. Optionally
blends in an external AI judgment.

PRINCIPLES:
- Same inputs, same output (no randomness, no wall clock)
- Every penalty leaves a human-readable flag
- No I/O: the caller fetches reviews and the external judgment

USAGE:
    from reviewradar.scoring import TrustScorer

    scorer = TrustScorer()
    analysis = scorer.analyze(reviews, product)
    print(analysis.score, analysis.grade, analysis.flags)

    report = scorer.evaluate(reviews, product, judgment={"aggregateScore": 90, "flags": []})
    print(report.final_score, report.final_grade)
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from ..reviews.review_models import AnalysisResult, ProductSummary, Review, SignalName, SignalResult
from ..utils import round_half_up
from .fusion import TrustReport, fuse, score_to_grade
from .review_signals import run_signals
from .scoring_config import ScoringConfig, DEFAULT_CONFIG

logger = logging.getLogger(__name__)

ProductInput = Union[ProductSummary, Mapping[Any, Any], None]


def _as_product(product: ProductInput) -> Optional[ProductSummary]:
    """Accept a ProductSummary, a bare star->pct mapping or a product payload."""
    if product is None or isinstance(product, ProductSummary):
        return product
    if any(isinstance(k, int) for k in product.keys()) or all(str(k).isdigit() for k in product.keys()):
        return ProductSummary.from_dict({"rating_distribution": product})
    return ProductSummary.from_dict(product)


class TrustScorer:
    """
    Review trust scorer - 100% deterministic.

    Composite weights:
    - RATING DISTRIBUTION (0.30)
    - VERIFIED PURCHASE (0.30)
    - BURST (0.20)
    - SIMILARITY (0.20)
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.config.validate()

    # =========================================================================
    # MAIN ENTRY POINTS
    # =========================================================================

    def analyze(
        self,
        reviews: Sequence[Review],
        product: ProductInput = None,
    ) -> AnalysisResult:
        """
        Score a review collection with the local signal detectors.

        An empty collection returns the neutral result (50, C) instead of
        a low score: no data is not evidence of manipulation.
        """
        cfg = self.config.composite
        if not reviews:
            return AnalysisResult(score=cfg.neutral_score, grade=cfg.neutral_grade)

        product = _as_product(product)
        signals = run_signals(reviews, product, self.config)

        flags = [flag for signal in signals.values() for flag in signal.flags]
        score = self.composite_score(signals)
        grade = self.grade(score)

        logger.info(
            "Analyzed %d reviews: score=%d grade=%s flags=%d",
            len(reviews), score, grade, len(flags),
            extra={
                "product_id": product.product_id if product else None,
                "score": score,
                "grade": grade,
                "review_count": len(reviews),
            },
        )

        return AnalysisResult(
            score=score,
            grade=grade,
            flags=flags,
            signals=signals,
            review_count=len(reviews),
        )

    def evaluate(
        self,
        reviews: Sequence[Review],
        product: ProductInput = None,
        judgment: Any = None,
    ) -> TrustReport:
        """Analyze, then fuse with the external judgment when one is given."""
        analysis = self.analyze(reviews, product)
        return fuse(analysis, judgment, self.config.fusion, self.config.composite)

    # =========================================================================
    # COMPOSITE
    # =========================================================================

    def composite_score(self, signals: Mapping[SignalName, SignalResult]) -> int:
        """
        Weighted mean of the present signals' raw scores.

        Normalized by the weights actually present, so a partial signal set
        still lands on the 0-100 scale.
        """
        total = 0.0
        weight_sum = 0.0
        for name, weight in self.config.composite.weights.items():
            signal = signals.get(name)
            if signal is None:
                continue
            total += signal.raw_score * weight
            weight_sum += weight

        if weight_sum <= 0:
            return self.config.composite.neutral_score
        return round_half_up(total / weight_sum)

    def grade(self, score: int) -> str:
        return score_to_grade(score, self.config.composite)


def analyze_reviews(
    reviews: Sequence[Review],
    product: ProductInput = None,
    judgment: Any = None,
    config: Optional[ScoringConfig] = None,
) -> TrustReport:
    """Convenience wrapper: TrustScorer(config).evaluate(...)."""
    return TrustScorer(config).evaluate(reviews, product, judgment)
