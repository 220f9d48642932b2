"""
External AI Judgment
====================

Shape of the trust judgment returned by an external language-model
reviewer, plus helpers to build it from per-review scores or from the
model's raw text reply.

The provider call itself lives outside this package. Whatever it returns
is normalized into an ExternalJudgment; failures are represented by a
judgment carrying `error`, never by an exception.
"""

import json
import logging
import re
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..utils import round_half_up

logger = logging.getLogger(__name__)

# Score assumed for a review the model did not score
DEFAULT_TRUST_SCORE = 50

HIGH_RISK = "high"

# First JSON array in the reply, possibly wrapped in a markdown code block
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class ReviewTrustScore(BaseModel):
    """Trust assessment for one review."""
    review_id: Optional[str] = None
    trust_score: Optional[float] = Field(default=None, ge=0, le=100)
    flags: List[str] = Field(default_factory=list)
    risk_level: Optional[str] = None

    class Config:
        populate_by_name = True
        coerce_numbers_to_str = True

    @field_validator("flags", mode="before")
    @classmethod
    def _null_flags(cls, value):
        return [] if value is None else value


class ExternalJudgment(BaseModel):
    """
    Aggregated external judgment for a review set.

    Usable for fusion only when `error` is empty and `aggregate_score`
    is present.
    """
    aggregate_score: Optional[float] = Field(default=None, alias="aggregateScore", ge=0, le=100)
    flags: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    high_risk_count: int = Field(default=0, alias="highRiskCount", ge=0)
    review_scores: List[ReviewTrustScore] = Field(default_factory=list, alias="reviewScores")
    model: Optional[str] = None
    tokens_used: int = Field(default=0, alias="tokensUsed", ge=0)

    class Config:
        populate_by_name = True

    @field_validator("flags", mode="before")
    @classmethod
    def _null_flags(cls, value):
        return [] if value is None else value

    @property
    def is_usable(self) -> bool:
        return not self.error and self.aggregate_score is not None

    @classmethod
    def failed(cls, message: str) -> "ExternalJudgment":
        """Judgment carrying only an error marker."""
        return cls(error=message)

    @classmethod
    def from_review_scores(
        cls,
        scores: Iterable[ReviewTrustScore],
        model: Optional[str] = None,
        tokens_used: int = 0,
    ) -> "ExternalJudgment":
        """
        Aggregate per-review scores.

        aggregate = mean trust score (missing scores count as 50),
        flags = all per-review flags deduplicated in first-seen order,
        high_risk_count = reviews with risk_level "high".
        """
        scores = list(scores)
        if not scores:
            return cls.failed("External judgment contained no review scores")

        total = sum(
            s.trust_score if s.trust_score is not None else DEFAULT_TRUST_SCORE
            for s in scores
        )
        flags = list(dict.fromkeys(flag for s in scores for flag in s.flags))
        high_risk = sum(1 for s in scores if (s.risk_level or "").lower() == HIGH_RISK)

        return cls(
            aggregate_score=round_half_up(total / len(scores)),
            flags=flags,
            high_risk_count=high_risk,
            review_scores=scores,
            model=model,
            tokens_used=tokens_used,
        )

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def parse_judgment_content(
    content: str,
    model: Optional[str] = None,
    tokens_used: int = 0,
) -> ExternalJudgment:
    """
    Build a judgment from a model's text reply.

    The reply is expected to hold a JSON array such as
    [{"review_id": "...", "trust_score": 85, "flags": [...], "risk_level": "low"}].
    """
    match = _JSON_ARRAY.search(content or "")
    if not match:
        logger.warning("External judgment reply did not contain a JSON array")
        return ExternalJudgment.failed("AI response did not contain valid JSON array")

    try:
        items = json.loads(match.group(0))
        if not isinstance(items, list):
            raise ValueError("expected a JSON array")
        scores = [ReviewTrustScore.model_validate(item) for item in items]
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning(f"Failed to parse external judgment: {e}")
        return ExternalJudgment.failed(f"Invalid AI response: {e}")

    return ExternalJudgment.from_review_scores(scores, model=model, tokens_used=tokens_used)


def coerce_judgment(value: Any) -> Optional[ExternalJudgment]:
    """
    Normalize whatever the caller passed as a judgment.

    Accepts None, an ExternalJudgment or a mapping. A mapping that fails
    validation becomes an error-marked judgment.
    """
    if value is None or isinstance(value, ExternalJudgment):
        return value
    try:
        return ExternalJudgment.model_validate(value)
    except ValidationError as e:
        logger.warning(f"Discarding malformed external judgment: {e.error_count()} validation error(s)")
        return ExternalJudgment.failed("Malformed external judgment")
