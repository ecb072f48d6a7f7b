"""Core evaluation stages."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .external import (
    ExternalProfileExtractor,
    ExternalProfileResult,
    ExtractedProfile,
    build_social_insights,
    format_external_content,
)
from .model_json import parse_model_json, strip_code_fences
from .profile import ProfileParseOutcome, ProfileParser, merge_profiles
from .recommendation import RecommendationGenerator
from .scoring import (
    BudgetCheck,
    CandidateData,
    ScoringEngine,
    SkillMatch,
    build_candidate_dossier,
    build_criteria_list,
    calculate_total_experience,
    check_budget,
    match_skills,
    pre_evaluation_red_flags,
    quick_score,
)
from .transcription import (
    TranscriptionOutcome,
    TranscriptionResult,
    TranscriptionStage,
    count_filler_words,
    fluency_score,
)

__all__ = [
    "BudgetCheck",
    "CandidateData",
    "ExternalProfileExtractor",
    "ExternalProfileResult",
    "ExtractedProfile",
    "ProfileParseOutcome",
    "ProfileParser",
    "RecommendationGenerator",
    "ScoringEngine",
    "SkillMatch",
    "TranscriptionOutcome",
    "TranscriptionResult",
    "TranscriptionStage",
    "build_candidate_dossier",
    "build_criteria_list",
    "build_social_insights",
    "calculate_total_experience",
    "check_budget",
    "count_filler_words",
    "fluency_score",
    "format_external_content",
    "match_skills",
    "merge_profiles",
    "parse_model_json",
    "pre_evaluation_red_flags",
    "quick_score",
    "strip_code_fences",
]
