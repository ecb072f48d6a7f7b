"""Profile parsing stage: résumé and external pages to a unified profile."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, TypeVar

import structlog
from pydantic import BaseModel

from ..clients.base import DocumentModelClient, TextModelClient
from ..errors import EvaluationError, ParseError
from ..fetch import HttpFetcher
from ..schemas import (
    Education,
    ExtractedSkill,
    LanguageSkill,
    ProfileLinks,
    ProjectInfo,
    UnifiedProfile,
    WorkExperience,
)
from .model_json import parse_model_json

DEFAULT_PORTFOLIO_CHAR_LIMIT = 15_000

_SKILL_CATEGORIES = {"technical", "soft", "language", "tool"}
_SKILL_LEVELS = {"beginner", "intermediate", "advanced", "expert"}
_LANGUAGE_LEVELS = {"beginner", "intermediate", "advanced", "native"}

EXTRACT_INSTRUCTIONS = """Extract ALL text content from this résumé.
Include everything: contact info, summary, skills, experience, education,
certifications, languages and links. Output the raw text, preserving structure
with line breaks."""

RESUME_PROMPT = """You are an expert HR résumé parser. Analyze this résumé text and extract structured information.

Résumé text:
{text}

Return ONLY a JSON object with this exact structure:
{{
  "summary": "<professional summary, or a brief one based on the experience>",
  "skills": [{{"name": "", "category": "technical|soft|language|tool", "years_of_experience": null, "proficiency": "beginner|intermediate|advanced|expert"}}],
  "experience": [{{"title": "", "company": "", "start_date": "YYYY-MM or YYYY", "end_date": "YYYY-MM, YYYY or null if current", "is_current": false, "duration": "e.g. 2 years 3 months", "responsibilities": [], "achievements": []}}],
  "education": [{{"degree": "", "institution": "", "field": "", "graduation_year": "YYYY", "gpa": null}}],
  "languages": [{{"language": "", "proficiency": "beginner|intermediate|advanced|native"}}],
  "certifications": [],
  "links": {{"linkedin": null, "portfolio": null, "behance": null, "github": null, "other": []}}
}}

Extract every skill mentioned (technical, soft, tools, frameworks), infer proficiency
from context when it is not stated, and keep job titles in their original language.
"""

PORTFOLIO_PROMPT = """Analyze this portfolio page HTML and extract the skills demonstrated,
the project types, the tools or software used and any professional information.

HTML content (first {limit} characters):
{html}

Return ONLY JSON:
{{
  "skills": ["skill"],
  "project_types": ["type"],
  "tools": ["tool"],
  "projects": [{{"name": "", "description": "<one sentence>", "technologies": ["tool"]}}],
  "highlights": ["<notable achievement, client or award>"],
  "summary": "<brief summary of the portfolio>"
}}
"""


@dataclass(slots=True)
class ProfileParseOutcome:
    """Result of parsing one profile source."""

    source: str
    parsed: bool
    profile: UnifiedProfile | None = None
    error: str | None = None
    raw_text: str | None = None
    highlights: list[str] = field(default_factory=list)
    projects: list[ProjectInfo] = field(default_factory=list)


class ProfileParser:
    """Builds structured profiles from résumés and portfolio pages."""

    def __init__(
        self,
        fetcher: HttpFetcher,
        document_client: DocumentModelClient,
        text_model: TextModelClient,
        *,
        portfolio_char_limit: int = DEFAULT_PORTFOLIO_CHAR_LIMIT,
    ) -> None:
        self._fetcher = fetcher
        self._document_client = document_client
        self._text_model = text_model
        self._portfolio_char_limit = portfolio_char_limit
        self._logger = structlog.get_logger(__name__)

    async def parse_resume(self, url: str) -> ProfileParseOutcome:
        """Fetch and parse a résumé.

        Raises FetchError when the document cannot be downloaded, ServiceError
        when a model call fails and ParseError when the structured output is
        not valid JSON.
        """

        resource = await self._fetcher.fetch(url, accept="application/pdf,*/*")
        mime_type = _document_mime_type(url, resource.content_type)
        raw_text = await self._document_client.extract_text(
            resource.content, mime_type, EXTRACT_INSTRUCTIONS
        )
        self._logger.info("profile.resume_extracted", url=url, characters=len(raw_text))

        payload = parse_model_json(await self._text_model.generate(RESUME_PROMPT.format(text=raw_text)))
        if not isinstance(payload, dict):
            raise ParseError("Résumé response is not a JSON object")
        profile = normalize_profile(payload)
        self._logger.info(
            "profile.resume_parsed",
            skills=len(profile.skills),
            experience=len(profile.experience),
            education=len(profile.education),
        )
        return ProfileParseOutcome(source="resume", parsed=True, profile=profile, raw_text=raw_text)

    async def parse_portfolio(self, url: str, *, source: str = "portfolio") -> ProfileParseOutcome:
        """Extract skills and tools from a portfolio page; never raises."""

        try:
            resource = await self._fetcher.fetch(url, accept="text/html,*/*")
            html = resource.text[: self._portfolio_char_limit]
            prompt = PORTFOLIO_PROMPT.format(limit=self._portfolio_char_limit, html=html)
            payload = parse_model_json(await self._text_model.generate(prompt))
        except EvaluationError as exc:
            self._logger.warning("profile.portfolio_failed", url=url, error=exc.message)
            return ProfileParseOutcome(source=source, parsed=False, error=exc.message)

        if not isinstance(payload, dict):
            return ProfileParseOutcome(
                source=source, parsed=False, error="Portfolio response is not a JSON object"
            )

        skills = [
            ExtractedSkill(name=name, category="technical", proficiency="advanced")
            for name in _string_list(payload.get("skills"))
        ] + [
            ExtractedSkill(name=name, category="tool", proficiency="intermediate")
            for name in _string_list(payload.get("tools"))
        ]
        links = ProfileLinks(behance=url) if source == "behance" else ProfileLinks(portfolio=url)
        profile = UnifiedProfile(
            summary=_string(payload.get("summary")),
            skills=skills,
            links=links,
        )
        highlights = _string_list(payload.get("highlights"))
        project_types = _string_list(payload.get("project_types"))
        if project_types:
            highlights.append(f"Project types: {', '.join(project_types)}")
        return ProfileParseOutcome(
            source=source,
            parsed=True,
            profile=profile,
            highlights=highlights,
            projects=normalize_projects(payload.get("projects")),
        )

    async def parse_linkedin(self, url: str) -> ProfileParseOutcome:
        if "linkedin.com/in/" not in url:
            return ProfileParseOutcome(
                source="linkedin", parsed=False, error="Invalid LinkedIn URL format"
            )
        return ProfileParseOutcome(
            source="linkedin",
            parsed=False,
            error="LinkedIn parsing requires API integration. URL saved for reference.",
        )


def merge_profiles(*profiles: UnifiedProfile | None) -> UnifiedProfile:
    """Merge profiles in priority order, skipping absent ones.

    The longest summary wins; list entries are appended only when their
    lower-cased key is new; link fields are overwritten by later sources only
    with non-empty values.
    """

    merged = UnifiedProfile()
    seen: dict[str, set[str]] = {
        "skills": set(),
        "experience": set(),
        "education": set(),
        "languages": set(),
        "certifications": set(),
    }

    for profile in profiles:
        if profile is None:
            continue
        if profile.summary and len(profile.summary) > len(merged.summary):
            merged.summary = profile.summary

        _append_unique(merged.skills, profile.skills, seen["skills"], lambda s: s.name)
        _append_unique(
            merged.experience,
            profile.experience,
            seen["experience"],
            lambda e: f"{e.company}-{e.title}",
        )
        _append_unique(
            merged.education,
            profile.education,
            seen["education"],
            lambda e: f"{e.institution}-{e.degree}",
        )
        _append_unique(
            merged.languages, profile.languages, seen["languages"], lambda lang: lang.language
        )
        _append_unique(
            merged.certifications, profile.certifications, seen["certifications"], lambda c: c
        )
        merged.links = _merge_links(merged.links, profile.links)

    return merged


ItemT = TypeVar("ItemT")


def _append_unique(
    target: list[ItemT],
    items: Iterable[ItemT],
    seen: set[str],
    key: Callable[[ItemT], str],
) -> None:
    for item in items:
        normalized = key(item).lower()
        if normalized in seen:
            continue
        seen.add(normalized)
        target.append(item.model_copy(deep=True) if isinstance(item, BaseModel) else item)


def _merge_links(current: ProfileLinks, incoming: ProfileLinks) -> ProfileLinks:
    data = current.model_dump()
    for name in ("linkedin", "portfolio", "behance", "github"):
        value = getattr(incoming, name)
        if value:
            data[name] = value
    other = list(data["other"])
    for link in incoming.other:
        if link and link not in other:
            other.append(link)
    data["other"] = other
    return ProfileLinks.model_validate(data)


def normalize_profile(payload: dict[str, Any]) -> UnifiedProfile:
    """Build a profile from model output, dropping entries without key fields."""

    links = payload.get("links") if isinstance(payload.get("links"), dict) else {}
    return UnifiedProfile(
        summary=_string(payload.get("summary")),
        skills=normalize_skills(payload.get("skills")),
        experience=normalize_experience(payload.get("experience")),
        education=normalize_education(payload.get("education")),
        languages=normalize_languages(payload.get("languages")),
        certifications=_string_list(payload.get("certifications")),
        links=ProfileLinks(
            linkedin=_optional_string(links.get("linkedin")),
            portfolio=_optional_string(links.get("portfolio")),
            behance=_optional_string(links.get("behance")),
            github=_optional_string(links.get("github")),
            other=_string_list(links.get("other")),
        ),
    )


def normalize_skills(items: Any) -> list[ExtractedSkill]:
    skills: list[ExtractedSkill] = []
    for item in _dict_list(items):
        name = _string(item.get("name"))
        if not name:
            continue
        years = item.get("years_of_experience")
        if isinstance(years, bool) or not isinstance(years, (int, float)):
            years = None
        skills.append(
            ExtractedSkill(
                name=name,
                category=_choice(item.get("category"), _SKILL_CATEGORIES, "technical"),
                years_of_experience=years,
                proficiency=_choice(item.get("proficiency"), _SKILL_LEVELS, "intermediate"),
            )
        )
    return skills


def normalize_experience(items: Any) -> list[WorkExperience]:
    experience: list[WorkExperience] = []
    for item in _dict_list(items):
        title = _string(item.get("title"))
        company = _string(item.get("company"))
        if not (title and company):
            continue
        experience.append(
            WorkExperience(
                title=title,
                company=company,
                start_date=_optional_string(item.get("start_date")),
                end_date=_optional_string(item.get("end_date")),
                is_current=bool(item.get("is_current")),
                duration=_optional_string(item.get("duration")),
                responsibilities=_string_list(item.get("responsibilities")),
                achievements=_string_list(item.get("achievements")),
            )
        )
    return experience


def normalize_education(items: Any) -> list[Education]:
    education: list[Education] = []
    for item in _dict_list(items):
        degree = _string(item.get("degree"))
        institution = _string(item.get("institution"))
        if not (degree and institution):
            continue
        education.append(
            Education(
                degree=degree,
                institution=institution,
                field=_optional_string(item.get("field")),
                graduation_year=_optional_string(item.get("graduation_year")),
                gpa=_optional_string(item.get("gpa")),
            )
        )
    return education


def normalize_languages(items: Any) -> list[LanguageSkill]:
    languages: list[LanguageSkill] = []
    for item in _dict_list(items):
        language = _string(item.get("language"))
        if not language:
            continue
        languages.append(
            LanguageSkill(
                language=language,
                proficiency=_choice(item.get("proficiency"), _LANGUAGE_LEVELS, "intermediate"),
            )
        )
    return languages


def normalize_projects(items: Any) -> list[ProjectInfo]:
    projects: list[ProjectInfo] = []
    for item in _dict_list(items):
        name = _string(item.get("name"))
        if not name:
            continue
        projects.append(
            ProjectInfo(
                name=name,
                description=_string(item.get("description")),
                technologies=_string_list(item.get("technologies")),
                url=_optional_string(item.get("url")),
            )
        )
    return projects


def _document_mime_type(url: str, content_type: str) -> str:
    if content_type and content_type not in ("application/octet-stream", "binary/octet-stream"):
        return content_type
    lowered = url.lower().split("?")[0]
    if lowered.endswith(".png"):
        return "image/png"
    if lowered.endswith((".jpg", ".jpeg")):
        return "image/jpeg"
    return "application/pdf"


def _dict_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _string(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_string(value: Any) -> str | None:
    text = _string(value)
    return text or None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_string(item) for item in value) if text]


def _choice(value: Any, allowed: set[str], default: str) -> Any:
    text = _string(value).lower()
    return text if text in allowed else default


__all__ = [
    "DEFAULT_PORTFOLIO_CHAR_LIMIT",
    "ProfileParseOutcome",
    "ProfileParser",
    "merge_profiles",
    "normalize_education",
    "normalize_experience",
    "normalize_languages",
    "normalize_profile",
    "normalize_projects",
    "normalize_skills",
]
