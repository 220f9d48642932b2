"""
Review Signal Detectors (Deterministic)
=======================================

Four independent heuristics, each a pure function of the review snapshot:

    1. Rating distribution: 5-star concentration, polarized 5/1 split
    2. Verified Purchase ratio
    3. Review burst: dates piling up in one week / one month
    4. Similar phrasing: cosine similarity between review bodies

Every detector returns a SignalResult starting at 100 and subtracting
penalties. No shared state, so they can run in any order.

Usage:
    result = analyze_similarity(reviews)
    print(result.raw_score, result.flags, result.details["cluster_size"])
"""

import datetime as dt
import logging
import math
import re
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence, Set

from ..reviews.review_models import ProductSummary, Review, SignalName, SignalResult
from ..utils import format_pct, round_half_up
from .scoring_config import (
    BurstConfig,
    RatingDistributionConfig,
    ScoringConfig,
    SimilarityConfig,
    VerifiedPurchaseConfig,
    DEFAULT_CONFIG,
)

logger = logging.getLogger(__name__)

STARS = (1, 2, 3, 4, 5)

# Word characters are [A-Za-z0-9_]; accented letters act as separators
_NON_WORD = re.compile(r"\W+", re.ASCII)


# =============================================================================
# SIGNAL 1: RATING DISTRIBUTION
# =============================================================================

def derive_rating_distribution(reviews: Sequence[Review]) -> Dict[int, int]:
    """
    Estimate a star distribution (percentages) from the reviews themselves.

    Each bucket is rounded on its own, so the total may drift from 100.
    Reviews without a rating still count in the denominator.
    """
    counts = {star: 0 for star in STARS}
    for review in reviews:
        star = review.star
        if star in counts:
            counts[star] += 1

    total = len(reviews)
    if total == 0:
        return counts
    return {star: round_half_up(count / total * 100) for star, count in counts.items()}


def analyze_rating_distribution(
    reviews: Sequence[Review],
    product: Optional[ProductSummary] = None,
    config: RatingDistributionConfig = DEFAULT_CONFIG.rating_distribution,
) -> SignalResult:
    """
    Flag rating-polarity abuse.

    Uses the product's own distribution when it has one, otherwise derives
    it from the reviews. Penalties:
        p5 >= 85           -> -35, suspicious
        70 <= p5 < 85      -> -15
        p5+p1 >= 80, p3<5  -> -20, suspicious (cumulative)
    """
    result = SignalResult(name=SignalName.RATING_DISTRIBUTION)

    if product is not None and product.has_distribution:
        distribution = dict(product.rating_distribution)
        source = "product"
    else:
        distribution = derive_rating_distribution(reviews)
        source = "derived"

    p5 = distribution.get(5) or 0
    p1 = distribution.get(1) or 0
    p3 = distribution.get(3) or 0
    result.details.update({"p5": p5, "p1": p1, "p3": p3, "distribution_source": source})

    if p5 >= config.extreme_five_star_pct:
        result.penalize(
            config.extreme_five_star_penalty,
            f"5-star reviews extremely high ({format_pct(p5)}%)",
            suspicious=True,
        )
    elif p5 >= config.high_five_star_pct:
        result.penalize(
            config.high_five_star_penalty,
            f"High 5-star concentration ({format_pct(p5)}%)",
        )

    if p5 + p1 >= config.bimodal_pct and p3 < config.bimodal_max_middle_pct:
        result.penalize(
            config.bimodal_penalty,
            "Bimodal distribution: polarized 5★/1★ with no middle ratings",
            suspicious=True,
        )

    return result.clamp()


# =============================================================================
# SIGNAL 2: VERIFIED PURCHASE RATIO
# =============================================================================

def analyze_verified_purchase(
    reviews: Sequence[Review],
    product: Optional[ProductSummary] = None,
    config: VerifiedPurchaseConfig = DEFAULT_CONFIG.verified_purchase,
) -> SignalResult:
    """Penalize a low share of Verified Purchase reviews."""
    result = SignalResult(name=SignalName.VERIFIED_PURCHASE, details={"vp_ratio": 0.0})
    if not reviews:
        return result

    verified = sum(1 for r in reviews if r.is_verified_purchase)
    ratio = verified / len(reviews)
    result.details["vp_ratio"] = ratio
    pct = round_half_up(ratio * 100)

    if ratio < config.low_ratio:
        result.penalize(
            config.low_penalty,
            f"Low Verified Purchase ratio ({pct}%)",
            suspicious=True,
        )
    elif ratio < config.below_average_ratio:
        result.penalize(config.below_average_penalty, f"Below average VP ratio ({pct}%)")

    return result.clamp()


# =============================================================================
# SIGNAL 3: REVIEW BURST
# =============================================================================

def week_key(day: dt.date) -> str:
    """ISO date of the Sunday starting the week that contains `day`."""
    if isinstance(day, dt.datetime):
        day = day.date()
    # weekday(): Monday=0 .. Sunday=6
    start = day - dt.timedelta(days=(day.weekday() + 1) % 7)
    return start.isoformat()


def analyze_burst(
    reviews: Sequence[Review],
    product: Optional[ProductSummary] = None,
    config: BurstConfig = DEFAULT_CONFIG.burst,
) -> SignalResult:
    """
    Detect review dates piling up in a short window.

    Weekly burst (-25) and same-month clustering (-20) are evaluated
    independently and both apply when both conditions hold.
    """
    result = SignalResult(name=SignalName.BURST)

    dates = [r.date for r in reviews if r.date is not None]
    result.details["dated_reviews"] = len(dates)
    if len(dates) < config.min_dated_reviews:
        return result

    weeks = Counter(week_key(d) for d in dates)
    max_count = max(weeks.values())
    avg_count = sum(weeks.values()) / len(weeks)
    result.details.update({"week_count": len(weeks), "max_week_count": max_count})

    if max_count >= avg_count * config.burst_multiplier and max_count >= config.min_burst_count:
        result.penalize(
            config.burst_penalty,
            f"Review burst: {max_count} reviews in a single week",
            suspicious=True,
        )

    months = {(d.year, d.month) for d in dates}
    if len(months) == 1 and len(dates) >= config.same_month_min_reviews:
        result.penalize(
            config.same_month_penalty,
            "All reviews clustered in the same month",
            suspicious=True,
        )

    return result.clamp()


# =============================================================================
# SIGNAL 4: SIMILAR PHRASING
# =============================================================================

def word_frequency(text: str, min_length: int = 4) -> Counter:
    """Term-frequency vector: lower-cased word tokens of at least min_length chars."""
    tokens = _NON_WORD.split(text.lower())
    return Counter(t for t in tokens if len(t) >= min_length)


def cosine_similarity(v1: Counter, v2: Counter) -> float:
    """Cosine of two term-frequency vectors, 0.0 if either is empty."""
    mag1 = sum(c * c for c in v1.values())
    mag2 = sum(c * c for c in v2.values())
    if not mag1 or not mag2:
        return 0.0
    # Terms missing from one side contribute 0 to the dot product
    small, large = (v1, v2) if len(v1) <= len(v2) else (v2, v1)
    dot = sum(count * large.get(term, 0) for term, count in small.items())
    return dot / (math.sqrt(mag1) * math.sqrt(mag2))


def find_similar_cluster(
    bodies: Sequence[str],
    threshold: float = 0.6,
    min_token_length: int = 4,
) -> Set[int]:
    """
    Indices of texts having at least one partner with similarity > threshold.

    O(n²) pairwise comparison; n is the review count of one product.
    """
    vectors = [word_frequency(body, min_token_length) for body in bodies]
    members: Set[int] = set()

    for i in range(len(vectors)):
        for j in range(i + 1, len(vectors)):
            if cosine_similarity(vectors[i], vectors[j]) > threshold:
                members.add(i)
                members.add(j)

    return members


def analyze_similarity(
    reviews: Sequence[Review],
    product: Optional[ProductSummary] = None,
    config: SimilarityConfig = DEFAULT_CONFIG.similarity,
) -> SignalResult:
    """Penalize collections where many reviews share near-identical wording."""
    result = SignalResult(
        name=SignalName.SIMILARITY,
        details={"cluster_size": 0, "cluster_ratio": 0.0},
    )
    if len(reviews) < config.min_reviews:
        return result

    cluster = find_similar_cluster(
        [r.body for r in reviews],
        threshold=config.pair_threshold,
        min_token_length=config.min_token_length,
    )
    size = len(cluster)
    ratio = size / len(reviews)
    result.details.update({"cluster_size": size, "cluster_ratio": ratio})

    if ratio >= config.cluster_ratio_high:
        result.penalize(
            config.cluster_high_penalty,
            f"{size} reviews share suspiciously similar text",
            suspicious=True,
        )
    elif ratio >= config.cluster_ratio_moderate:
        result.penalize(
            config.cluster_moderate_penalty,
            f"Some reviews share similar phrasing ({size} reviews)",
        )

    return result.clamp()


# =============================================================================
# REGISTRY
# =============================================================================

SignalDetector = Callable[[Sequence[Review], Optional[ProductSummary], ScoringConfig], SignalResult]

# Evaluation order; also the order flags are concatenated in.
SIGNAL_DETECTORS: Dict[SignalName, SignalDetector] = {
    SignalName.RATING_DISTRIBUTION: lambda reviews, product, cfg: analyze_rating_distribution(
        reviews, product, cfg.rating_distribution),
    SignalName.VERIFIED_PURCHASE: lambda reviews, product, cfg: analyze_verified_purchase(
        reviews, product, cfg.verified_purchase),
    SignalName.BURST: lambda reviews, product, cfg: analyze_burst(
        reviews, product, cfg.burst),
    SignalName.SIMILARITY: lambda reviews, product, cfg: analyze_similarity(
        reviews, product, cfg.similarity),
}


def run_signals(
    reviews: Sequence[Review],
    product: Optional[ProductSummary] = None,
    config: ScoringConfig = DEFAULT_CONFIG,
    only: Optional[List[SignalName]] = None,
) -> Dict[SignalName, SignalResult]:
    """
    Evaluate the detectors in evaluation order.

    Args:
        only: Restrict to a subset of signals (order is still evaluation order).
    """
    signals: Dict[SignalName, SignalResult] = {}
    for name, detector in SIGNAL_DETECTORS.items():
        if only is not None and name not in only:
            continue
        signals[name] = detector(reviews, product, config)
        logger.debug(
            "Signal %s: raw=%d suspicious=%s flags=%d",
            name.value, signals[name].raw_score, signals[name].suspicious, len(signals[name].flags),
        )
    return signals
