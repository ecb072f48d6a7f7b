from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LanguageLevel = Literal["beginner", "intermediate", "advanced", "native"]


class SkillRequirement(BaseModel):
    """Skill listed on a job posting."""

    name: str
    importance: Literal["required", "preferred"] = "required"
    type: Literal["technical", "soft"] | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class LanguageRequirement(BaseModel):
    """Spoken/written language requirement."""

    language: str
    level: LanguageLevel = "intermediate"

    model_config = ConfigDict(extra="forbid", frozen=True)


class CustomCriterion(BaseModel):
    """Free-form weighted evaluation criterion."""

    name: str
    description: str = ""
    weight: int = Field(default=5, ge=1, le=10)
    required: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


class ScreeningQuestion(BaseModel):
    """Yes/no knockout question asked on the application form."""

    question: str
    disqualify: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


class JobCriteria(BaseModel):
    """Everything the pipeline needs to know about a job."""

    title: str
    description: str = ""
    min_experience: float = 0
    skills: list[SkillRequirement] = Field(default_factory=list)
    languages: list[LanguageRequirement] = Field(default_factory=list)
    criteria: list[CustomCriterion] = Field(default_factory=list)
    screening_questions: list[ScreeningQuestion] = Field(default_factory=list)
    salary_min: float | None = None
    salary_max: float | None = None
    auto_reject_threshold: float = Field(default=0, ge=0, le=100)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def required_skills(self) -> list[SkillRequirement]:
        return [skill for skill in self.skills if skill.importance == "required"]

    @property
    def preferred_skills(self) -> list[SkillRequirement]:
        return [skill for skill in self.skills if skill.importance == "preferred"]
