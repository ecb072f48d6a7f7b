"""Scoring engine: candidate dossier and job criteria to weighted criterion scores."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import pendulum
import structlog

from ..clients.base import TextModelClient
from ..errors import ScoringError
from ..schemas import (
    CriterionMatch,
    EvaluationInput,
    JobCriteria,
    PersonalData,
    ScoringResult,
    SkillRequirement,
    TextResponse,
    UnifiedProfile,
    VoiceAnalysisDetail,
)
from ..schemas.evaluation import round_half_up
from .external import ExternalProfileResult, format_external_content
from .model_json import parse_model_json

LANGUAGE_LEVELS: tuple[str, ...] = ("beginner", "intermediate", "advanced", "native")

_YEAR = re.compile(r"^\d{4}$")
_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")

SCORING_PROMPT = """You are an expert HR evaluator for a recruitment platform.

JOB DETAILS:
Title: {title}
Description: {description}
Minimum Experience Required: {min_experience} years

EVALUATION CRITERIA:
{criteria}

CANDIDATE PROFILE:
{dossier}

Score the candidate against every criterion above and return ONLY JSON with this exact structure:
{{
  "criteria_matches": [
    {{
      "name": "<criterion name>",
      "matched": true,
      "score": <0-100>,
      "weight": <1-10, importance level>,
      "reason": "<max 15 words>",
      "evidence": ["<specific fact, max 15 words>"]
    }}
  ],
  "strengths": ["<max 15 words>"],
  "weaknesses": ["<max 15 words>"],
  "red_flags": ["<concern, max 15 words>"],
  "summary": "<one sentence summarizing fit>",
  "why_section": "Matched X% because: <1-2 short points>"
}}

Scoring guidelines:
- 90-100: exceptional match, exceeds requirements
- 80-89: strong match, meets all key requirements
- 70-79: good match, meets most requirements
- 60-69: acceptable match, meets minimum requirements
- 50-59: partial match, missing some requirements
- below 50: poor match, significant gaps

Be direct and use concrete facts and numbers. Cross-reference résumé claims with the
voice and written answers.
"""


@dataclass(slots=True, frozen=True)
class BudgetCheck:
    """Salary expectation compared to the job's budget."""

    within_budget: bool
    salary_expectation: float | None = None
    budget_min: float | None = None
    budget_max: float | None = None
    difference: float | None = None
    red_flag: str | None = None


@dataclass(slots=True, frozen=True)
class SkillMatch:
    matched: list[str]
    missing: list[str]
    extra: list[str]
    match_percentage: int


@dataclass(slots=True)
class CandidateData:
    """Everything the scoring model sees about one candidate."""

    personal_data: PersonalData
    profile: UnifiedProfile | None = None
    voice_answers: list[VoiceAnalysisDetail] = field(default_factory=list)
    text_responses: list[TextResponse] = field(default_factory=list)
    additional_notes: str | None = None
    external_profiles: ExternalProfileResult | None = None


def check_budget(
    salary_expectation: float | None,
    budget_min: float | None = None,
    budget_max: float | None = None,
) -> BudgetCheck:
    if not salary_expectation:
        return BudgetCheck(within_budget=True)
    if not budget_max:
        return BudgetCheck(within_budget=True, salary_expectation=salary_expectation)

    within_budget = salary_expectation <= budget_max
    if within_budget:
        return BudgetCheck(
            within_budget=True,
            salary_expectation=salary_expectation,
            budget_min=budget_min,
            budget_max=budget_max,
        )

    difference = salary_expectation - budget_max
    return BudgetCheck(
        within_budget=False,
        salary_expectation=salary_expectation,
        budget_min=budget_min,
        budget_max=budget_max,
        difference=difference,
        red_flag=(
            f"Salary expectation ({format_amount(salary_expectation)}) exceeds budget "
            f"(max {format_amount(budget_max)}) by {format_amount(difference)}"
        ),
    )


def format_amount(value: float) -> str:
    """Format a number with thousands separators, dropping a zero fraction."""

    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def meets_language_requirement(candidate_level: str, required_level: str) -> bool:
    candidate = candidate_level.strip().lower()
    required = required_level.strip().lower()
    if candidate not in LANGUAGE_LEVELS or required not in LANGUAGE_LEVELS:
        return False
    return LANGUAGE_LEVELS.index(candidate) >= LANGUAGE_LEVELS.index(required)


def pre_evaluation_red_flags(evaluation_input: EvaluationInput) -> list[str]:
    """Deterministic red flags for knockout answers, languages and experience."""

    personal = evaluation_input.personal_data
    job = evaluation_input.job_criteria
    flags: list[str] = []

    for question in job.screening_questions:
        if question.disqualify and personal.screening_answers.get(question.question) is False:
            flags.append(f"Failed knockout question: {question.question}")

    if personal.language_proficiency:
        reported = {name.lower(): level for name, level in personal.language_proficiency.items()}
        for requirement in job.languages:
            level = reported.get(requirement.language.lower())
            if not level:
                flags.append(
                    f"Missing required language: {requirement.language} "
                    f"({requirement.level} required)"
                )
            elif not meets_language_requirement(level, requirement.level):
                flags.append(
                    f"Language gap: {requirement.language} - Has {level}, "
                    f"requires {requirement.level}"
                )

    years = personal.years_of_experience
    if job.min_experience and years is not None and years < job.min_experience:
        gap = job.min_experience - years
        flags.append(
            f"Experience gap: {format_amount(gap)} year{'s' if gap > 1 else ''} below minimum "
            f"(Has {format_amount(years)}, requires {format_amount(job.min_experience)})"
        )

    return flags


def build_candidate_dossier(candidate: CandidateData) -> str:
    personal = candidate.personal_data
    lines = [
        "## Basic Information",
        f"- Name: {personal.name}",
        f"- Email: {personal.email or 'Not provided'}",
        f"- Phone: {personal.phone or 'Not provided'}",
        f"- Age: {personal.age if personal.age is not None else 'Not provided'}",
        "- Years of Experience (self-reported): "
        + (
            format_amount(personal.years_of_experience)
            if personal.years_of_experience is not None
            else "Not provided"
        ),
    ]
    for label, url in (
        ("LinkedIn", personal.linkedin_url),
        ("Behance", personal.behance_url),
        ("Portfolio", personal.portfolio_url),
    ):
        if url:
            lines.append(f"- {label}: {url}")

    profile = candidate.profile
    if profile is not None:
        lines += ["", "## Résumé Summary", profile.summary or "No summary available"]
        lines += ["", f"### Skills ({len(profile.skills)} total)"]
        lines += [f"- {s.name} ({s.category}, {s.proficiency})" for s in profile.skills]
        lines += ["", f"### Work Experience ({len(profile.experience)} positions)"]
        for job in profile.experience:
            lines.append(f"- {job.title} at {job.company}, duration: {job.duration or 'Unknown'}")
            if job.responsibilities:
                lines.append(f"  Responsibilities: {'; '.join(job.responsibilities[:3])}")
        lines += ["", "### Education"]
        lines += [
            f"- {e.degree} in {e.field or 'N/A'} from {e.institution} ({e.graduation_year or 'N/A'})"
            for e in profile.education
        ]
        lines += ["", "### Languages"]
        lines += [f"- {lang.language}: {lang.proficiency}" for lang in profile.languages]
        lines += ["", "### Certifications", ", ".join(profile.certifications) or "None listed"]

    answered = [answer for answer in candidate.voice_answers if answer.clean_transcript]
    if answered:
        lines += ["", "## Voice Interview Responses"]
        for answer in answered:
            lines.append(
                f"### Question (Weight: {answer.question_weight}/10): {answer.question_text}"
            )
            lines.append(f"Response: {answer.clean_transcript}")
            analysis = answer.analysis
            if analysis is not None:
                lines.append(
                    f"Sentiment: {analysis.sentiment.label} ({analysis.sentiment.score:.2f})"
                )
                lines.append(f"Confidence Score: {analysis.confidence.score:g}%")
                lines.append(f"Fluency Score: {analysis.fluency.score:g}%")
                if analysis.key_phrases:
                    lines.append(f"Key Phrases: {', '.join(analysis.key_phrases)}")

    if candidate.text_responses:
        lines += ["", "## Written Responses"]
        for response in candidate.text_responses:
            lines.append(f"### Question: {response.question_text}")
            lines.append(f"Answer: {response.answer}")

    external = candidate.external_profiles
    if external is not None and external.success:
        lines += ["", format_external_content(external)]

    if candidate.additional_notes:
        lines += ["", "## Additional Notes from Candidate", candidate.additional_notes]

    return "\n".join(lines)


def build_criteria_list(job: JobCriteria) -> str:
    def skill_lines(skills: list[SkillRequirement]) -> list[str]:
        return [f"- {s.name} ({s.type or 'general'})" for s in skills] or ["- None specified"]

    lines = ["### Required Skills (Weight: 10)", *skill_lines(job.required_skills)]
    lines += ["", "### Preferred Skills (Weight: 5)", *skill_lines(job.preferred_skills)]
    lines += [
        "",
        "### Experience Requirement",
        f"- Minimum {format_amount(job.min_experience)} years of experience",
    ]
    lines += ["", "### Language Requirements"]
    lines += [f"- {lang.language}: {lang.level} level" for lang in job.languages] or [
        "- None specified"
    ]
    lines += ["", "### Custom Criteria"]
    if job.criteria:
        for criterion in job.criteria:
            necessity = "REQUIRED" if criterion.required else "Preferred"
            lines.append(f"- {criterion.name} (Weight: {criterion.weight}/10, {necessity})")
            if criterion.description:
                lines.append(f"  {criterion.description}")
    else:
        lines.append("- None specified")
    return "\n".join(lines)


class ScoringEngine:
    """Asks the text model for per-criterion scores and aggregates them."""

    def __init__(self, text_model: TextModelClient) -> None:
        self._text_model = text_model
        self._logger = structlog.get_logger(__name__)

    async def score(self, candidate: CandidateData, job: JobCriteria) -> ScoringResult:
        """Score a candidate; raises ScoringError on malformed model output."""

        budget = check_budget(
            candidate.personal_data.salary_expectation, job.salary_min, job.salary_max
        )
        prompt = SCORING_PROMPT.format(
            title=job.title,
            description=job.description,
            min_experience=format_amount(job.min_experience),
            criteria=build_criteria_list(job),
            dossier=build_candidate_dossier(candidate),
        )
        payload = parse_model_json(await self._text_model.generate(prompt), error_cls=ScoringError)
        if not isinstance(payload, dict):
            raise ScoringError("Scoring response is not a JSON object")

        red_flags = _string_list(payload.get("red_flags"))
        if budget.red_flag:
            red_flags.append(budget.red_flag)

        result = ScoringResult(
            criteria_matches=normalize_criteria_matches(payload.get("criteria_matches")),
            strengths=_string_list(payload.get("strengths")),
            weaknesses=_string_list(payload.get("weaknesses")),
            red_flags=red_flags,
            summary=_string(payload.get("summary")),
        )
        result.why_section = _string(payload.get("why_section")) or (
            f"Scored {result.overall_score}% based on evaluation criteria."
        )
        self._logger.info(
            "scoring.complete",
            overall_score=result.overall_score,
            criteria=len(result.criteria_matches),
            red_flags=len(result.red_flags),
        )
        return result


def normalize_criteria_matches(items: Any) -> list[CriterionMatch]:
    """Validate model criteria, clamping values and dropping unnamed entries."""

    if items is None:
        return []
    if not isinstance(items, list):
        raise ScoringError("criteria_matches must be a list")
    matches: list[CriterionMatch] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = _string(item.get("name") or item.get("criteria_name"))
        if not name:
            continue
        matches.append(
            CriterionMatch.model_validate(
                {
                    "name": name,
                    "matched": bool(item.get("matched")),
                    "score": item.get("score"),
                    "weight": item.get("weight"),
                    "reason": item.get("reason"),
                    "evidence": item.get("evidence"),
                }
            )
        )
    return matches


def calculate_total_experience(
    experience: Iterable[Any],
    as_of: pendulum.DateTime | None = None,
) -> float:
    """Sum employment spans in years, rounded to one decimal.

    Accepts ``YYYY``, ``YYYY-MM`` and ISO-8601 dates. Current roles and roles
    without an end date run until ``as_of`` (defaults to now).
    """

    now = as_of or pendulum.now("UTC")
    total_months = 0
    for job in experience:
        start = _parse_date(getattr(job, "start_date", None))
        if start is None:
            continue
        end_raw = getattr(job, "end_date", None)
        if getattr(job, "is_current", False) or not end_raw:
            end = now
        else:
            end = _parse_date(end_raw)
        if end is None:
            continue
        months = (end.year - start.year) * 12 + (end.month - start.month)
        total_months += max(0, months)
    return round_half_up(total_months / 12 * 10) / 10


def match_skills(
    candidate_skills: Iterable[str],
    requirements: Sequence[SkillRequirement],
) -> SkillMatch:
    """Compare candidate skill names with job skills using substring matching."""

    names = list(candidate_skills)
    lowered = {name.lower() for name in names}
    matched: list[str] = []
    missing: list[str] = []
    for requirement in requirements:
        if _contains_skill(lowered, requirement.name.lower(), bidirectional=True):
            matched.append(requirement.name)
        elif requirement.importance == "required":
            missing.append(requirement.name)

    required_names = {r.name.lower() for r in requirements}
    extra = [name for name in names if name.lower() not in required_names]

    required = [r for r in requirements if r.importance == "required"]
    if required:
        required_lookup = {r.name.lower() for r in required}
        matched_required = sum(1 for name in matched if name.lower() in required_lookup)
        percentage = round_half_up(matched_required / len(required) * 100)
    else:
        percentage = 100
    return SkillMatch(matched=matched, missing=missing, extra=extra, match_percentage=percentage)


def quick_score(
    *,
    years_of_experience: float | None,
    required_experience: float,
    skills: Iterable[str],
    required_skills: Sequence[str],
    preferred_skills: Sequence[str],
) -> int:
    """Model-free pre-filter score: experience 30, required 50, preferred 20."""

    lowered = {skill.lower() for skill in skills}
    score = 0.0
    max_score = 30.0
    if years_of_experience is not None:
        if years_of_experience >= required_experience:
            score += 30
        elif years_of_experience >= required_experience * 0.5:
            score += 15

    if required_skills:
        max_score += 50
        hits = sum(1 for s in required_skills if _contains_skill(lowered, s.lower()))
        score += hits / len(required_skills) * 50

    if preferred_skills:
        max_score += 20
        hits = sum(1 for s in preferred_skills if _contains_skill(lowered, s.lower()))
        score += hits / len(preferred_skills) * 20

    return round_half_up(score / max_score * 100)


def _contains_skill(candidate: set[str], wanted: str, *, bidirectional: bool = False) -> bool:
    if wanted in candidate:
        return True
    return any(wanted in name or (bidirectional and name in wanted) for name in candidate)


def _parse_date(value: Any) -> pendulum.DateTime | None:
    if not value:
        return None
    text = str(value).strip()
    if _YEAR.match(text):
        return pendulum.datetime(int(text), 1, 1)
    match = _YEAR_MONTH.match(text)
    if match:
        month = int(match.group(2))
        if not 1 <= month <= 12:
            return None
        return pendulum.datetime(int(match.group(1)), month, 1)
    try:
        parsed = pendulum.parse(text, strict=False)
    except ValueError:
        return None
    return parsed if isinstance(parsed, pendulum.DateTime) else None


def _string(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [text for text in (_string(item) for item in value) if text]


__all__ = [
    "BudgetCheck",
    "CandidateData",
    "LANGUAGE_LEVELS",
    "ScoringEngine",
    "SkillMatch",
    "build_candidate_dossier",
    "build_criteria_list",
    "calculate_total_experience",
    "check_budget",
    "format_amount",
    "match_skills",
    "meets_language_requirement",
    "normalize_criteria_matches",
    "pre_evaluation_red_flags",
    "quick_score",
]
