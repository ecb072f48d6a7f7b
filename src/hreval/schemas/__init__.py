"""Pydantic schema definitions for pipeline inputs and outputs."""

from __future__ import annotations

from .candidate import (
    Education,
    EvaluationInput,
    ExtractedSkill,
    LanguageSkill,
    PersonalData,
    ProfileLinks,
    TextResponse,
    UnifiedProfile,
    VoiceResponse,
    WorkExperience,
)
from .evaluation import (
    BatchEntry,
    BatchEvaluationResult,
    ConfidenceSignal,
    CriterionMatch,
    EvaluationOutcome,
    EvaluationProgress,
    EvaluationResult,
    FluencySignal,
    GitHubInsights,
    PortfolioInsights,
    ProjectInfo,
    RecommendationResult,
    ScoringResult,
    SentimentSignal,
    SocialProfileInsights,
    TextAnswerAssessment,
    TextResponseAnalysis,
    TranscriptPair,
    VoiceAnalysis,
    VoiceAnalysisDetail,
    calculate_weighted_score,
)
from .job import (
    CustomCriterion,
    JobCriteria,
    LanguageRequirement,
    ScreeningQuestion,
    SkillRequirement,
)

__all__ = [
    "BatchEntry",
    "BatchEvaluationResult",
    "ConfidenceSignal",
    "CriterionMatch",
    "CustomCriterion",
    "Education",
    "EvaluationInput",
    "EvaluationOutcome",
    "EvaluationProgress",
    "EvaluationResult",
    "ExtractedSkill",
    "FluencySignal",
    "GitHubInsights",
    "JobCriteria",
    "LanguageRequirement",
    "LanguageSkill",
    "PersonalData",
    "PortfolioInsights",
    "ProfileLinks",
    "ProjectInfo",
    "RecommendationResult",
    "ScoringResult",
    "ScreeningQuestion",
    "SentimentSignal",
    "SkillRequirement",
    "SocialProfileInsights",
    "TextAnswerAssessment",
    "TextResponse",
    "TextResponseAnalysis",
    "TranscriptPair",
    "UnifiedProfile",
    "VoiceAnalysis",
    "VoiceAnalysisDetail",
    "VoiceResponse",
    "WorkExperience",
    "calculate_weighted_score",
]
