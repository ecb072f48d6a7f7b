from __future__ import annotations

import pytest
from pydantic import ValidationError

from hreval.schemas import (
    CriterionMatch,
    EvaluationInput,
    JobCriteria,
    RecommendationResult,
    ScoringResult,
    SentimentSignal,
    calculate_weighted_score,
)
from hreval.schemas.evaluation import round_half_up


def test_weighted_score_rounds_weighted_mean():
    matches = [
        CriterionMatch(name="Python", score=90, weight=10),
        CriterionMatch(name="Communication", score=70, weight=5),
    ]
    # (900 + 350) / 15 = 83.33
    assert calculate_weighted_score(matches) == 83


def test_weighted_score_is_order_independent():
    matches = [
        CriterionMatch(name="A", score=40, weight=3),
        CriterionMatch(name="B", score=95, weight=8),
        CriterionMatch(name="C", score=60, weight=1),
    ]
    assert calculate_weighted_score(matches) == calculate_weighted_score(reversed(matches))


def test_weighted_score_of_empty_list_is_zero():
    assert calculate_weighted_score([]) == 0
    assert ScoringResult().overall_score == 0


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(82.5) == 83
    assert round_half_up(84.5) == 85
    assert round_half_up(84.49) == 84


def test_criterion_match_clamps_out_of_range_values():
    match = CriterionMatch.model_validate(
        {"name": "Go", "score": 140, "weight": 0, "reason": None, "evidence": "shipped service"}
    )
    assert match.score == 100
    assert match.weight == 1
    assert match.reason == ""
    assert match.evidence == ["shipped service"]

    fallback = CriterionMatch.model_validate({"name": "Go", "score": "n/a", "weight": None})
    assert fallback.score == 0
    assert fallback.weight == 5


def test_scoring_result_serializes_derived_overall_score():
    result = ScoringResult(criteria_matches=[CriterionMatch(name="X", score=75, weight=2)])
    dumped = result.model_dump()
    assert dumped["overall_score"] == 75


def test_scoring_result_round_trips_through_dump():
    result = ScoringResult(
        criteria_matches=[CriterionMatch(name="X", score=75, weight=2)], summary="Fit"
    )

    restored = ScoringResult.model_validate(result.model_dump())

    assert restored == result
    assert restored.overall_score == 75


def test_sentiment_signal_normalizes_label_and_score():
    signal = SentimentSignal.model_validate({"score": 3, "label": "POSITIVE"})
    assert signal.score == 1
    assert signal.label == "positive"
    assert SentimentSignal.model_validate({"label": "ecstatic"}).label == "neutral"


def test_recommendation_caps_suggested_questions():
    with pytest.raises(ValidationError):
        RecommendationResult(suggested_questions=[f"q{i}" for i in range(6)])


def test_job_criteria_splits_skills_by_importance():
    job = JobCriteria.model_validate(
        {
            "title": "Designer",
            "skills": [
                {"name": "Figma", "importance": "required"},
                {"name": "Illustrator", "importance": "preferred"},
            ],
        }
    )
    assert [s.name for s in job.required_skills] == ["Figma"]
    assert [s.name for s in job.preferred_skills] == ["Illustrator"]


def test_job_criteria_rejects_threshold_out_of_range():
    with pytest.raises(ValidationError):
        JobCriteria(title="Designer", auto_reject_threshold=120)


def test_evaluation_input_limits_additional_notes():
    with pytest.raises(ValidationError):
        EvaluationInput.model_validate(
            {
                "applicant_id": "A",
                "job_id": "J",
                "personal_data": {"name": "N"},
                "job_criteria": {"title": "T"},
                "additional_notes": "x" * 501,
            }
        )
