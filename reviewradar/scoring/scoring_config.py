"""
Calibration constants for the Review Radar trust scoring.

Every threshold, penalty and weight used by the signal detectors, the
composite scorer and the external-judgment fusion lives here.

PRINCIPLES:
- No magic numbers in the detector code
- Each signal starts at 100 and subtracts penalties; scores never go below 0
- Penalties within one signal are cumulative
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from ..reviews.review_models import SignalName


@dataclass(frozen=True)
class RatingDistributionConfig:
    """
    Rating polarity abuse (star distribution).

    Fake campaigns push the 5-star share very high, and review bombing
    combined with fake praise produces a 5/1 split with an empty middle.
    """
    extreme_five_star_pct: float = 85.0
    extreme_five_star_penalty: int = 35

    high_five_star_pct: float = 70.0
    high_five_star_penalty: int = 15

    # p5 + p1 >= bimodal_pct and p3 < bimodal_max_middle_pct
    bimodal_pct: float = 80.0
    bimodal_max_middle_pct: float = 5.0
    bimodal_penalty: int = 20


@dataclass(frozen=True)
class VerifiedPurchaseConfig:
    """Share of reviews carrying a Verified Purchase badge."""
    low_ratio: float = 0.4
    low_penalty: int = 35

    below_average_ratio: float = 0.6
    below_average_penalty: int = 15


@dataclass(frozen=True)
class BurstConfig:
    """
    Temporal concentration of review dates.

    Weekly burst: busiest week >= burst_multiplier * mean week and
    >= min_burst_count reviews. Same month: every dated review in one
    calendar month with at least same_month_min_reviews dated reviews.
    Both penalties stack.
    """
    min_dated_reviews: int = 3

    burst_multiplier: float = 3.0
    min_burst_count: int = 3
    burst_penalty: int = 25

    same_month_min_reviews: int = 5
    same_month_penalty: int = 20


@dataclass(frozen=True)
class SimilarityConfig:
    """Near-duplicate review text (bag-of-words cosine similarity)."""
    min_reviews: int = 3
    min_token_length: int = 4  # tokens shorter than this are dropped
    pair_threshold: float = 0.6  # strictly greater than

    cluster_ratio_high: float = 0.4
    cluster_high_penalty: int = 30

    cluster_ratio_moderate: float = 0.2
    cluster_moderate_penalty: int = 15


@dataclass(frozen=True)
class CompositeConfig:
    """Weighted fusion of the signal raw scores and the grade table."""
    weights: Dict[SignalName, float] = field(default_factory=lambda: {
        SignalName.RATING_DISTRIBUTION: 0.30,
        SignalName.VERIFIED_PURCHASE: 0.30,
        SignalName.BURST: 0.20,
        SignalName.SIMILARITY: 0.20,
    })

    # (minimum score, grade), checked top to bottom
    grade_thresholds: Tuple[Tuple[int, str], ...] = (
        (80, "A"),
        (60, "B"),
        (40, "C"),
        (20, "D"),
        (0, "F"),
    )

    # Display description per grade
    grade_labels: Dict[str, str] = field(default_factory=lambda: {
        "A": "Trustworthy reviews",
        "B": "Generally reliable",
        "C": "Some concerns",
        "D": "Suspected fake reviews",
        "F": "Highly suspicious",
    })

    # Returned when there is nothing to score
    neutral_score: int = 50
    neutral_grade: str = "C"


@dataclass(frozen=True)
class FusionConfig:
    """Blend of the local composite score with an external judgment."""
    pattern_weight: float = 0.4
    external_weight: float = 0.6
    # Grades counted as a detected fake review set
    suspicious_grades: Tuple[str, ...] = ("D", "F")


@dataclass
class ScoringConfig:
    """
    Global scoring configuration.

    Single entry point for calibration.
    """
    rating_distribution: RatingDistributionConfig = field(default_factory=RatingDistributionConfig)
    verified_purchase: VerifiedPurchaseConfig = field(default_factory=VerifiedPurchaseConfig)
    burst: BurstConfig = field(default_factory=BurstConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    composite: CompositeConfig = field(default_factory=CompositeConfig)
    fusion: FusionConfig = field(default_factory=FusionConfig)

    def validate(self) -> bool:
        """Check the configuration is internally consistent."""
        weights = self.composite.weights
        assert set(weights) == set(SignalName), \
            f"Weights must cover every signal, got {sorted(w.value for w in weights)}"
        assert all(w > 0 for w in weights.values()), "Signal weights must be positive"

        minimums = [minimum for minimum, _grade in self.composite.grade_thresholds]
        assert minimums == sorted(minimums, reverse=True), \
            "Grade thresholds must be listed from highest to lowest"
        assert minimums[-1] == 0, "Lowest grade threshold must be 0"
        missing = [g for _minimum, g in self.composite.grade_thresholds if g not in self.composite.grade_labels]
        assert not missing, f"Grades without a label: {missing}"

        fusion_total = self.fusion.pattern_weight + self.fusion.external_weight
        assert abs(fusion_total - 1.0) < 1e-9, \
            f"Fusion weights must sum to 1 ({fusion_total})"

        assert self.rating_distribution.extreme_five_star_pct > self.rating_distribution.high_five_star_pct
        assert self.verified_purchase.low_ratio < self.verified_purchase.below_average_ratio
        assert self.similarity.cluster_ratio_high > self.similarity.cluster_ratio_moderate
        return True


DEFAULT_CONFIG = ScoringConfig()
