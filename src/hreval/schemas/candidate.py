from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .job import JobCriteria

SkillCategory = Literal["technical", "soft", "language", "tool"]
SkillProficiency = Literal["beginner", "intermediate", "advanced", "expert"]
LanguageProficiencyLevel = Literal["beginner", "intermediate", "advanced", "native"]


class PersonalData(BaseModel):
    """Self-reported applicant data from the application form."""

    name: str
    email: str = ""
    phone: str = ""
    age: int | None = None
    years_of_experience: float | None = None
    salary_expectation: float | None = None
    linkedin_url: str | None = None
    behance_url: str | None = None
    portfolio_url: str | None = None
    screening_answers: dict[str, bool] = Field(default_factory=dict)
    language_proficiency: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid", frozen=True)


class VoiceResponse(BaseModel):
    """Recorded answer to a voice question."""

    question_id: str
    question_text: str
    question_weight: int = Field(default=5, ge=1, le=10)
    audio_url: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class TextResponse(BaseModel):
    """Written answer to a text question."""

    question_id: str
    question_text: str
    answer: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)


class EvaluationInput(BaseModel):
    """Immutable input of a single pipeline run."""

    applicant_id: str
    job_id: str
    personal_data: PersonalData
    voice_responses: list[VoiceResponse] = Field(default_factory=list)
    text_responses: list[TextResponse] = Field(default_factory=list)
    cv_url: str | None = None
    additional_notes: str | None = Field(default=None, max_length=500)
    job_criteria: JobCriteria

    model_config = ConfigDict(extra="forbid", frozen=True)


class ExtractedSkill(BaseModel):
    """Skill found in a résumé or external profile."""

    name: str
    category: SkillCategory = "technical"
    years_of_experience: float | None = None
    proficiency: SkillProficiency = "intermediate"

    model_config = ConfigDict(extra="forbid")


class WorkExperience(BaseModel):
    """Employment history entry."""

    title: str
    company: str
    start_date: str | None = None
    end_date: str | None = None
    is_current: bool = False
    duration: str | None = None
    responsibilities: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class Education(BaseModel):
    """Structured education history entry."""

    degree: str
    institution: str
    field: str | None = None
    graduation_year: str | None = None
    gpa: str | None = None

    model_config = ConfigDict(extra="forbid")


class LanguageSkill(BaseModel):
    """Language proficiency descriptor."""

    language: str
    proficiency: LanguageProficiencyLevel = "intermediate"

    model_config = ConfigDict(extra="forbid")


class ProfileLinks(BaseModel):
    """Links found on or attached to a profile."""

    linkedin: str | None = None
    portfolio: str | None = None
    behance: str | None = None
    github: str | None = None
    other: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class UnifiedProfile(BaseModel):
    """Structured candidate profile, from one source or merged from several."""

    summary: str = ""
    skills: list[ExtractedSkill] = Field(default_factory=list)
    experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    languages: list[LanguageSkill] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    links: ProfileLinks = Field(default_factory=ProfileLinks)

    model_config = ConfigDict(extra="forbid")
