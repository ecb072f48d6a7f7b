from __future__ import annotations

import math
from typing import Any, Iterable, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from .candidate import UnifiedProfile

RecommendationType = Literal["hire", "hold", "reject", "pending"]
SentimentLabel = Literal["negative", "neutral", "positive"]
AnswerQuality = Literal["poor", "average", "good", "excellent"]
StageType = Literal[
    "transcribing",
    "parsing_resume",
    "scoring",
    "generating_recommendation",
    "complete",
    "failed",
]


def clamp(value: Any, low: float, high: float, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = default
    if math.isnan(number):
        number = default
    return max(low, min(high, number))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


class CriterionMatch(BaseModel):
    """One evaluated criterion; score and weight are clamped, never rejected."""

    name: str
    matched: bool = False
    score: float = 0
    weight: float = 5
    reason: str = ""
    evidence: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> float:
        return clamp(value, 0, 100, 0)

    @field_validator("weight", mode="before")
    @classmethod
    def _clamp_weight(cls, value: Any) -> float:
        if value is None:
            return 5
        return clamp(value, 1, 10, 5)

    @field_validator("reason", mode="before")
    @classmethod
    def _coerce_reason(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("evidence", mode="before")
    @classmethod
    def _coerce_evidence(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            return [value] if value else []
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item]


def calculate_weighted_score(matches: Iterable[CriterionMatch]) -> int:
    """Return round(Σ score·weight / Σ weight), or 0 for an empty list."""
    items = list(matches)
    if not items:
        return 0
    total_weight = sum(match.weight for match in items)
    weighted_sum = sum(match.score * match.weight for match in items)
    return round_half_up(weighted_sum / total_weight)


class ScoringResult(BaseModel):
    """Scoring engine output; overall score is always derived from the matches."""

    criteria_matches: list[CriterionMatch] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    summary: str = ""
    why_section: str = ""

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _drop_derived_score(cls, data: Any) -> Any:
        # overall_score is recomputed from the matches, never trusted from input.
        if isinstance(data, dict) and "overall_score" in data:
            data = {key: value for key, value in data.items() if key != "overall_score"}
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def overall_score(self) -> int:
        return calculate_weighted_score(self.criteria_matches)


class RecommendationResult(BaseModel):
    """Final recommendation with follow-up guidance."""

    recommendation: RecommendationType = "pending"
    confidence: float = Field(default=0, ge=0, le=100)
    reason: str = ""
    suggested_questions: list[str] = Field(default_factory=list, max_length=5)
    next_best_action: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)


class SentimentSignal(BaseModel):
    score: float = 0
    label: SentimentLabel = "neutral"

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> float:
        return clamp(value, -1, 1, 0)

    @field_validator("label", mode="before")
    @classmethod
    def _normalize_label(cls, value: Any) -> str:
        label = str(value or "").strip().lower()
        return label if label in ("negative", "neutral", "positive") else "neutral"


class ConfidenceSignal(BaseModel):
    score: float = 50
    indicators: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> float:
        return clamp(value, 0, 100, 50)

    @field_validator("indicators", mode="before")
    @classmethod
    def _coerce_indicators(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item]


class FluencySignal(BaseModel):
    score: float = Field(ge=0, le=100)
    words_per_minute: int | None = None
    filler_word_count: int = 0

    model_config = ConfigDict(extra="forbid", frozen=True)


class VoiceAnalysis(BaseModel):
    """Signals derived from one transcribed voice answer."""

    sentiment: SentimentSignal = Field(default_factory=SentimentSignal)
    confidence: ConfidenceSignal = Field(default_factory=ConfidenceSignal)
    fluency: FluencySignal
    key_phrases: list[str] = Field(default_factory=list, max_length=5)

    model_config = ConfigDict(extra="forbid", frozen=True)


class TranscriptPair(BaseModel):
    """Raw and cleaned transcript of one voice question."""

    question_id: str
    raw_transcript: str = ""
    clean_transcript: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)


class VoiceAnalysisDetail(BaseModel):
    """Per-question voice breakdown for display."""

    question_id: str
    question_text: str
    question_weight: int
    raw_transcript: str
    clean_transcript: str
    analysis: VoiceAnalysis | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class TextAnswerAssessment(BaseModel):
    question_id: str
    question_text: str
    answer: str
    word_count: int
    quality: AnswerQuality

    model_config = ConfigDict(extra="forbid", frozen=True)


class TextResponseAnalysis(BaseModel):
    """Length-based quality summary of the written answers."""

    total_responses: int
    responses: list[TextAnswerAssessment]
    overall_quality: AnswerQuality
    insights: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


class ProjectInfo(BaseModel):
    """A project found on an external profile (repository or portfolio piece)."""

    name: str
    description: str = ""
    technologies: list[str] = Field(default_factory=list)
    url: str | None = None
    stars: int = 0
    forks: int = 0

    model_config = ConfigDict(extra="ignore", frozen=True)


class GitHubInsights(BaseModel):
    repositories: int
    stars: int
    languages: list[str] = Field(default_factory=list)
    top_projects: list[ProjectInfo] = Field(default_factory=list, max_length=5)
    highlights: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


class PortfolioInsights(BaseModel):
    url: str
    projects: list[ProjectInfo] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


class SocialProfileInsights(BaseModel):
    """What the external profiles contributed to an evaluation."""

    github: GitHubInsights | None = None
    portfolio: PortfolioInsights | None = None
    behance: PortfolioInsights | None = None
    overall_highlights: list[str] = Field(default_factory=list, max_length=10)

    model_config = ConfigDict(extra="forbid", frozen=True)


class EvaluationResult(BaseModel):
    """Terminal artifact of a successful pipeline run."""

    applicant_id: str
    job_id: str
    overall_score: int
    criteria_matches: list[CriterionMatch]
    strengths: list[str]
    weaknesses: list[str]
    red_flags: list[str]
    summary: str
    why_section: str
    recommendation: RecommendationType
    recommendation_confidence: float
    recommendation_reason: str
    suggested_questions: list[str]
    next_best_action: str
    sentiment_score: float | None = None
    confidence_score: float | None = None
    transcripts: list[TranscriptPair] = Field(default_factory=list)
    parsed_resume: UnifiedProfile | None = None
    voice_analysis_details: list[VoiceAnalysisDetail] = Field(default_factory=list)
    text_response_analysis: TextResponseAnalysis | None = None
    social_profile_insights: SocialProfileInsights | None = None
    evaluated_at: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class EvaluationOutcome(BaseModel):
    """Result envelope of one pipeline run, successful or not."""

    success: bool
    evaluation: EvaluationResult | None = None
    error: str | None = None
    processing_time_ms: int = 0

    model_config = ConfigDict(extra="forbid", frozen=True)


class EvaluationProgress(BaseModel):
    """Progress event emitted by the orchestrator."""

    stage: StageType
    progress: int = Field(ge=0, le=100)
    current_step: str
    error: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class BatchEntry(BaseModel):
    applicant_id: str
    success: bool
    error: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class BatchEvaluationResult(BaseModel):
    """Aggregate outcome of a batch run."""

    success: bool
    results: list[BatchEntry]
    total_processed: int
    total_failed: int

    model_config = ConfigDict(extra="forbid", frozen=True)
