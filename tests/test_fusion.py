"""
Tests for external AI judgment handling and score fusion.

- combine_scores: 40/60 blend, graceful fallback on missing/errored judgments
- fuse / TrustReport: grade recomputed from the fused score, combined flags
- ExternalJudgment: aggregation from per-review scores, parsing model replies

Usage:
    pytest tests/test_fusion.py -v
"""

import pytest

from reviewradar.ai.judgment import (
    ExternalJudgment,
    ReviewTrustScore,
    coerce_judgment,
    parse_judgment_content,
)
from reviewradar.reviews.review_models import AnalysisResult
from reviewradar.scoring.fusion import MODE_PATTERN, MODE_PATTERN_AI, combine_scores, fuse, grade_label


def make_analysis(score: int = 50, grade: str = "C", flags=None) -> AnalysisResult:
    return AnalysisResult(score=score, grade=grade, flags=list(flags or []), review_count=10)


# ============================================================================
# combine_scores
# ============================================================================

class TestCombineScores:
    """Tests for combine_scores()."""

    def test_no_judgment(self):
        assert combine_scores(50, None) == 50

    def test_blend(self):
        # round(50*0.4 + 90*0.6) = 74
        assert combine_scores(50, {"aggregateScore": 90, "flags": []}) == 74

    def test_blend_with_model_instance(self):
        judgment = ExternalJudgment(aggregate_score=20)
        # 80*0.4 + 20*0.6 = 44
        assert combine_scores(80, judgment) == 44

    def test_snake_case_mapping(self):
        assert combine_scores(50, {"aggregate_score": 90}) == 74

    def test_half_rounds_up(self):
        # 55*0.4 + 52.5*0.6 = 53.5
        assert combine_scores(55, {"aggregateScore": 52.5}) == 54

    @pytest.mark.parametrize("aggregate", [0, 37, 50, 90, 100, 150, -5])
    def test_error_marker_keeps_composite(self, aggregate):
        assert combine_scores(61, {"aggregateScore": aggregate, "error": "x"}) == 61

    def test_missing_aggregate_keeps_composite(self):
        assert combine_scores(61, {"flags": ["whatever"]}) == 61

    def test_malformed_payload_keeps_composite(self):
        assert combine_scores(61, {"aggregateScore": "not a number"}) == 61
        assert combine_scores(61, "garbage") == 61

    def test_empty_error_is_not_an_error(self):
        judgment = coerce_judgment({"aggregateScore": 90, "error": ""})
        assert judgment.is_usable is True
        assert combine_scores(50, judgment) == 74


# ============================================================================
# fuse / TrustReport
# ============================================================================

class TestFuse:
    """Tests for fuse() and the TrustReport it builds."""

    def test_grade_recomputed_from_fused_score(self):
        """Composite 50 (C) + external 90 -> 74 (B)."""
        report = fuse(make_analysis(50, "C"), {"aggregateScore": 90, "flags": []})
        assert report.final_score == 74
        assert report.final_grade == "B"
        assert report.analysis.grade == "C"
        assert report.mode == MODE_PATTERN_AI

    def test_pattern_only(self):
        report = fuse(make_analysis(72, "B", ["Below average VP ratio (50%)"]))
        assert report.final_score == 72
        assert report.final_grade == "B"
        assert report.mode == MODE_PATTERN
        assert report.judgment is None
        assert report.flags == ["Below average VP ratio (50%)"]

    def test_errored_judgment_falls_back(self):
        report = fuse(make_analysis(72, "B"), {"error": "HTTP 429"})
        assert report.final_score == 72
        assert report.final_grade == "B"
        assert report.mode == MODE_PATTERN
        assert report.judgment.error == "HTTP 429"

    def test_flags_pattern_then_judgment(self):
        analysis = make_analysis(50, "C", ["Low Verified Purchase ratio (10%)"])
        report = fuse(analysis, {"aggregateScore": 30, "flags": ["generic praise", "AI-like phrasing"]})
        assert report.flags == [
            "Low Verified Purchase ratio (10%)",
            "generic praise",
            "AI-like phrasing",
        ]
        # the analysis itself is left untouched
        assert analysis.flags == ["Low Verified Purchase ratio (10%)"]

    def test_suspicious_grades(self):
        assert fuse(make_analysis(30, "D")).is_suspicious is True
        assert fuse(make_analysis(10, "F")).is_suspicious is True
        assert fuse(make_analysis(45, "C")).is_suspicious is False

    def test_fusion_can_lift_out_of_suspicious(self):
        report = fuse(make_analysis(30, "D"), {"aggregateScore": 95})
        # 30*0.4 + 95*0.6 = 69
        assert report.final_score == 69
        assert report.is_suspicious is False

    def test_to_dict(self):
        report = fuse(make_analysis(50, "C"), {"aggregateScore": 90, "flags": ["ok"], "highRiskCount": 1})
        data = report.to_dict()
        assert data["finalScore"] == 74
        assert data["finalGrade"] == "B"
        assert data["mode"] == "pattern+ai"
        assert data["pattern"]["score"] == 50
        assert data["ai"]["aggregateScore"] == 90
        assert data["ai"]["highRiskCount"] == 1
        assert data["flags"] == ["ok"]

    def test_grade_label(self):
        report = fuse(make_analysis(50, "C"), {"aggregateScore": 90})
        assert report.final_label == "Generally reliable"
        assert report.to_dict()["finalLabel"] == "Generally reliable"
        assert fuse(make_analysis(10, "F")).final_label == "Highly suspicious"

    @pytest.mark.parametrize("grade,label", [
        ("A", "Trustworthy reviews"),
        ("B", "Generally reliable"),
        ("C", "Some concerns"),
        ("D", "Suspected fake reviews"),
        ("F", "Highly suspicious"),
        ("Z", ""),
    ])
    def test_grade_label_table(self, grade, label):
        assert grade_label(grade) == label

    def test_empty_error_does_not_warn(self, caplog):
        with caplog.at_level("WARNING", logger="reviewradar.scoring.fusion"):
            report = fuse(make_analysis(50, "C"), {"aggregateScore": 90, "error": ""})
        assert report.mode == MODE_PATTERN_AI
        assert caplog.records == []


# ============================================================================
# ExternalJudgment
# ============================================================================

class TestExternalJudgment:
    """Tests for ExternalJudgment construction."""

    def test_from_review_scores(self):
        scores = [
            ReviewTrustScore(review_id="R1", trust_score=80, flags=["specific usage"], risk_level="low"),
            ReviewTrustScore(review_id="R2", trust_score=None, flags=["generic"], risk_level="medium"),
            ReviewTrustScore(review_id="R3", trust_score=95, flags=["specific usage"], risk_level="HIGH"),
        ]
        judgment = ExternalJudgment.from_review_scores(scores, model="gpt-4o-mini", tokens_used=900)
        # (80 + 50 + 95) / 3 = 75
        assert judgment.aggregate_score == 75
        assert judgment.flags == ["specific usage", "generic"]
        assert judgment.high_risk_count == 1
        assert judgment.is_usable is True
        assert judgment.tokens_used == 900

    def test_mean_rounds_half_up(self):
        scores = [ReviewTrustScore(trust_score=70), ReviewTrustScore(trust_score=71)]
        assert ExternalJudgment.from_review_scores(scores).aggregate_score == 71

    def test_no_scores_is_an_error(self):
        judgment = ExternalJudgment.from_review_scores([])
        assert judgment.error is not None
        assert judgment.is_usable is False

    def test_failed(self):
        judgment = ExternalJudgment.failed("timeout")
        assert judgment.error == "timeout"
        assert judgment.aggregate_score is None
        assert judgment.to_dict() == {"flags": [], "error": "timeout", "highRiskCount": 0,
                                      "reviewScores": [], "tokensUsed": 0}

    def test_out_of_range_score_rejected(self):
        judgment = coerce_judgment({"aggregateScore": 120})
        assert judgment.is_usable is False

    def test_coerce_passthrough(self):
        judgment = ExternalJudgment(aggregate_score=40)
        assert coerce_judgment(judgment) is judgment
        assert coerce_judgment(None) is None


class TestParseJudgmentContent:
    """Tests for parse_judgment_content()."""

    def test_plain_array(self):
        content = (
            '[{"review_id": "R1", "trust_score": 85, "flags": ["specific usage described"], "risk_level": "low"},'
            ' {"review_id": "R2", "trust_score": 20, "flags": ["templated"], "risk_level": "high"}]'
        )
        judgment = parse_judgment_content(content, model="gpt-4o-mini")
        assert judgment.is_usable is True
        # (85 + 20) / 2 = 52.5 -> 53
        assert judgment.aggregate_score == 53
        assert judgment.high_risk_count == 1
        assert judgment.model == "gpt-4o-mini"
        assert [s.review_id for s in judgment.review_scores] == ["R1", "R2"]

    def test_markdown_code_block(self):
        content = 'Here you go:\n```json\n[{"review_id": "R1", "trust_score": 40, "risk_level": "medium"}]\n```'
        judgment = parse_judgment_content(content)
        assert judgment.aggregate_score == 40
        assert judgment.flags == []

    def test_numeric_review_ids(self):
        judgment = parse_judgment_content('[{"review_id": 17, "trust_score": 60}]')
        assert judgment.review_scores[0].review_id == "17"

    def test_null_flags_accepted(self):
        content = '[{"review_id": "R1", "trust_score": 90, "flags": null, "risk_level": "low"}]'
        judgment = parse_judgment_content(content)
        assert judgment.is_usable is True
        assert judgment.aggregate_score == 90
        assert judgment.flags == []
        assert judgment.review_scores[0].flags == []

    def test_null_risk_level_accepted(self):
        judgment = parse_judgment_content('[{"trust_score": 30, "flags": ["generic"], "risk_level": null}]')
        assert judgment.aggregate_score == 30
        assert judgment.high_risk_count == 0

    def test_null_flags_in_judgment_mapping(self):
        judgment = coerce_judgment({"aggregateScore": 40, "flags": None})
        assert judgment.is_usable is True
        assert judgment.flags == []

    def test_no_array(self):
        judgment = parse_judgment_content("I cannot help with that.")
        assert judgment.error == "AI response did not contain valid JSON array"
        assert judgment.is_usable is False

    def test_invalid_json(self):
        judgment = parse_judgment_content('[{"review_id": "R1", "trust_score": }]')
        assert judgment.error is not None
        assert judgment.error.startswith("Invalid AI response")

    def test_invalid_item(self):
        judgment = parse_judgment_content('[{"review_id": "R1", "trust_score": 400}]')
        assert judgment.is_usable is False

    def test_empty_content(self):
        assert parse_judgment_content("").is_usable is False
        assert parse_judgment_content(None).is_usable is False

    def test_parsed_judgment_fuses(self):
        judgment = parse_judgment_content('[{"trust_score": 90}, {"trust_score": 90}]')
        assert combine_scores(50, judgment) == 74
