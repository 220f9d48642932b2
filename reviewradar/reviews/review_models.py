"""
Review Radar Data Models
========================

Normalized inputs consumed by the scoring engine and the plain result
structures it hands back to the caller.

Models:
    - Review: one normalized, immutable review record
    - ProductSummary: product-level data (rating distribution)
    - SignalResult: output of one signal detector
    - AnalysisResult: composite score, grade and flags for a review set
"""

import datetime as dt
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


DEFAULT_REVIEWER_NAME = "Anonymous"

# Key aliases seen in review payloads, in lookup order.
_BODY_KEYS = ("body", "reviewText", "text", "content")
_RATING_KEYS = ("rating", "starRating", "overallRating")
_TITLE_KEYS = ("title", "reviewTitle")
_VERIFIED_KEYS = ("is_verified_purchase", "isVerifiedPurchase", "verifiedPurchase", "isVerified")
_HELPFUL_KEYS = ("helpful_votes", "helpfulVotes", "helpful")
_REVIEWER_KEYS = ("reviewer_name", "reviewerName", "customerName", "author")
_ID_KEYS = ("id", "review_id", "reviewId")


class SignalName(str, Enum):
    """Signal identifiers, in detector evaluation order."""
    RATING_DISTRIBUTION = "rating_distribution"
    VERIFIED_PURCHASE = "verified_purchase"
    BURST = "burst"
    SIMILARITY = "similarity"


def _first(data: Mapping[str, Any], keys) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _parse_rating(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if rating != rating:  # NaN
        return None
    return rating


def _parse_date(value: Any) -> Optional[dt.date]:
    """Accept date, datetime or an ISO-8601 string. Anything else is None."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return dt.datetime.fromisoformat(text).date()
        except ValueError:
            pass
        try:
            return dt.date.fromisoformat(text[:10])
        except ValueError:
            logger.debug("Unparseable review date: %r", value)
    return None


def _parse_flag(value: Any) -> bool:
    """Booleans, numbers and 'true'/'yes'/'1'/'on' strings; 'false' stays False."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _parse_int(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class Review:
    """
    One normalized review.

    `rating` and `date` may be None; signals needing them skip such reviews.
    Uniqueness of `id` is the caller's responsibility.
    """
    id: str
    body: str
    rating: Optional[float] = None
    title: str = ""
    is_verified_purchase: bool = False
    date: Optional[dt.date] = None
    helpful_votes: int = 0
    reviewer_name: str = DEFAULT_REVIEWER_NAME

    @property
    def star(self) -> Optional[int]:
        """Rating rounded half-up to the nearest integer star."""
        if self.rating is None:
            return None
        return int(self.rating + 0.5)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], index: int = 0) -> Optional["Review"]:
        """
        Build a Review from a loosely-keyed payload record.

        Args:
            data: Raw record (already decoded JSON).
            index: Position in the source list, used for a fallback id.

        Returns:
            Review instance, or None when the record has no body text.
        """
        body = _first(data, _BODY_KEYS)
        body = str(body).strip() if body is not None else ""
        if not body:
            return None

        review_id = _first(data, _ID_KEYS)
        return cls(
            id=str(review_id) if review_id is not None else f"review-{index}",
            body=body,
            rating=_parse_rating(_first(data, _RATING_KEYS)),
            title=str(_first(data, _TITLE_KEYS) or ""),
            is_verified_purchase=_parse_flag(_first(data, _VERIFIED_KEYS)),
            date=_parse_date(data.get("date") or data.get("review_date")),
            helpful_votes=_parse_int(_first(data, _HELPFUL_KEYS)),
            reviewer_name=str(_first(data, _REVIEWER_KEYS) or DEFAULT_REVIEWER_NAME),
        )


@dataclass(frozen=True)
class ProductSummary:
    """
    Product-level data supplied alongside the reviews.

    rating_distribution maps star (1..5) to the percentage of reviews.
    Percentages need not sum to 100; an empty or all-zero mapping means
    the distribution is unknown.
    """
    rating_distribution: Dict[int, float] = field(default_factory=dict)
    product_id: Optional[str] = None
    title: Optional[str] = None

    @property
    def has_distribution(self) -> bool:
        return any((v or 0) > 0 for v in self.rating_distribution.values())

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ProductSummary":
        """
        Build from a payload with `ratingDistribution` (string or int star keys).

        Raises:
            ValueError: If the payload or its distribution is not a mapping
        """
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError(f"Product must be an object, got {type(data).__name__}")

        raw = data.get("rating_distribution") or data.get("ratingDistribution") or {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"ratingDistribution must be an object, got {type(raw).__name__}")
        distribution: Dict[int, float] = {}
        for star, pct in raw.items():
            try:
                distribution[int(star)] = float(pct or 0)
            except (TypeError, ValueError):
                logger.debug("Ignoring distribution bucket %r=%r", star, pct)

        product_id = data.get("product_id") or data.get("asin")
        return cls(
            rating_distribution=distribution,
            product_id=str(product_id) if product_id else None,
            title=data.get("title"),
        )


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass
class SignalResult:
    """
    Output of a single signal detector.

    raw_score: 0-100, 100 = nothing suspicious.
    details: signal-specific auxiliary values (vp_ratio, cluster_size, ...).
    """
    name: SignalName
    raw_score: int = 100
    suspicious: bool = False
    flags: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def penalize(self, points: int, flag: str, suspicious: bool = False) -> None:
        """Subtract points, record the flag, optionally mark suspicious."""
        self.raw_score -= points
        self.flags.append(flag)
        if suspicious:
            self.suspicious = True

    def clamp(self) -> "SignalResult":
        self.raw_score = max(0, self.raw_score)
        return self

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "rawScore": self.raw_score,
            "suspicious": self.suspicious,
            "flags": list(self.flags),
        }
        for key, value in self.details.items():
            data[_camel(key)] = value
        return data


@dataclass
class AnalysisResult:
    """Composite result of all signals for one review collection."""
    score: int
    grade: str
    flags: List[str] = field(default_factory=list)
    signals: Dict[SignalName, SignalResult] = field(default_factory=dict)
    review_count: int = 0

    @property
    def suspicious_signals(self) -> List[SignalName]:
        return [name for name, s in self.signals.items() if s.suspicious]

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-safe structure for display or storage."""
        return {
            "score": self.score,
            "grade": self.grade,
            "flags": list(self.flags),
            "signals": {name.value: s.to_dict() for name, s in self.signals.items()},
            "reviewCount": self.review_count,
        }
