"""External profile extraction: GitHub, portfolio and Behance pages."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal

import structlog

from ..errors import FetchError
from ..fetch import HttpFetcher
from ..ratelimit import NoopRateLimiter, RateLimiter
from ..schemas import (
    ExtractedSkill,
    GitHubInsights,
    PortfolioInsights,
    ProfileLinks,
    ProjectInfo,
    SocialProfileInsights,
    UnifiedProfile,
)
from .profile import ProfileParser

GITHUB_API_URL = "https://api.github.com"
GITHUB_ACCEPT = "application/vnd.github.v3+json"
NO_EXTERNAL_CONTENT = "No external profile content available."

ProfileSource = Literal["linkedin", "github", "portfolio", "behance"]

_GITHUB_USER = re.compile(r"github\.com/([^/?#]+)", re.IGNORECASE)
_SOURCE_LABELS: dict[str, str] = {
    "linkedin": "LinkedIn",
    "github": "GitHub",
    "portfolio": "Portfolio",
    "behance": "Behance",
}


@dataclass(slots=True)
class ExtractedProfile:
    """Content pulled from one external profile URL."""

    source: ProfileSource
    url: str
    success: bool
    summary: str = ""
    highlights: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    projects: list[ProjectInfo] = field(default_factory=list)
    experience: list[str] = field(default_factory=list)
    profile: UnifiedProfile | None = None
    error: str | None = None


@dataclass(slots=True)
class ExternalProfileResult:
    """Every external profile processed for one applicant, in processing order."""

    extracted: list[ExtractedProfile] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return any(item.success for item in self.extracted)

    @property
    def successful(self) -> list[ExtractedProfile]:
        return [item for item in self.extracted if item.success]

    @property
    def errors(self) -> list[str]:
        return [
            f"{item.source}: {item.error}"
            for item in self.extracted
            if not item.success and item.error
        ]

    @property
    def all_skills(self) -> list[str]:
        seen: set[str] = set()
        skills: list[str] = []
        for item in self.successful:
            for skill in item.skills:
                if skill.lower() not in seen:
                    seen.add(skill.lower())
                    skills.append(skill)
        return skills

    @property
    def total_projects(self) -> int:
        return sum(len(item.projects) for item in self.successful)

    def get(self, source: ProfileSource) -> ExtractedProfile | None:
        for item in self.successful:
            if item.source == source:
                return item
        return None

    def profiles(self) -> list[UnifiedProfile]:
        return [item.profile for item in self.successful if item.profile is not None]


def detect_github_url(portfolio_url: str | None) -> str | None:
    """Return the portfolio URL when it points at GitHub."""

    if portfolio_url and "github.com" in portfolio_url.lower():
        return portfolio_url
    return None


class ExternalProfileExtractor:
    """Collects profile content from the links an applicant submitted.

    Sources are processed sequentially and every outbound request waits on
    the injected rate limiter. A failing source is recorded on the result and
    never raises.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        profile_parser: ProfileParser,
        *,
        rate_limiter: RateLimiter | None = None,
        github_api_url: str = GITHUB_API_URL,
    ) -> None:
        self._fetcher = fetcher
        self._profile_parser = profile_parser
        self._rate_limiter = rate_limiter or NoopRateLimiter()
        self._github_api_url = github_api_url.rstrip("/")
        self._logger = structlog.get_logger(__name__)

    async def extract(
        self,
        *,
        linkedin_url: str | None = None,
        portfolio_url: str | None = None,
        behance_url: str | None = None,
    ) -> ExternalProfileResult:
        result = ExternalProfileResult()
        github_url = detect_github_url(portfolio_url)

        if linkedin_url:
            result.extracted.append(await self.extract_linkedin(linkedin_url))
        if github_url:
            result.extracted.append(await self.extract_github(github_url))
        elif portfolio_url:
            result.extracted.append(await self.extract_page(portfolio_url, "portfolio"))
        if behance_url and behance_url != portfolio_url:
            result.extracted.append(await self.extract_page(behance_url, "behance"))

        if result.extracted:
            self._logger.info(
                "external.extracted",
                processed=len(result.extracted),
                succeeded=len(result.successful),
                skills=len(result.all_skills),
                projects=result.total_projects,
                errors=result.errors,
            )
        return result

    async def extract_linkedin(self, url: str) -> ExtractedProfile:
        outcome = await self._profile_parser.parse_linkedin(url)
        return ExtractedProfile(source="linkedin", url=url, success=False, error=outcome.error)

    async def extract_page(self, url: str, source: Literal["portfolio", "behance"]) -> ExtractedProfile:
        """Portfolio or Behance page, summarized by the text model."""

        if source == "behance" and "behance.net" not in url.lower():
            return ExtractedProfile(
                source=source, url=url, success=False, error="Invalid Behance URL format"
            )

        await self._rate_limiter.wait(source)
        outcome = await self._profile_parser.parse_portfolio(url, source=source)
        if not outcome.parsed or outcome.profile is None:
            return ExtractedProfile(source=source, url=url, success=False, error=outcome.error)

        profile = outcome.profile
        return ExtractedProfile(
            source=source,
            url=url,
            success=True,
            summary=profile.summary,
            highlights=list(outcome.highlights),
            skills=[skill.name for skill in profile.skills],
            projects=list(outcome.projects),
            profile=profile,
        )

    async def extract_github(self, url: str) -> ExtractedProfile:
        """Public profile and the ten most recently updated repositories."""

        match = _GITHUB_USER.search(url)
        if not match:
            return ExtractedProfile(
                source="github", url=url, success=False, error="Invalid GitHub URL format"
            )
        username = match.group(1)

        try:
            user = await self._github_json(f"/users/{username}")
        except FetchError as exc:
            status = exc.details.get("status_code")
            error = f"GitHub API error: {status}" if status else exc.message
            self._logger.warning("external.github_failed", username=username, error=error)
            return ExtractedProfile(source="github", url=url, success=False, error=error)
        except ValueError as exc:
            self._logger.warning("external.github_failed", username=username, error=str(exc))
            return ExtractedProfile(
                source="github", url=url, success=False, error="GitHub API returned invalid JSON"
            )
        if not isinstance(user, dict):
            return ExtractedProfile(
                source="github", url=url, success=False, error="GitHub API returned invalid JSON"
            )

        try:
            repos = await self._github_json(f"/users/{username}/repos?sort=updated&per_page=10")
        except (FetchError, ValueError) as exc:
            self._logger.warning("external.github_repos_failed", username=username, error=str(exc))
            repos = []
        if not isinstance(repos, list):
            repos = []

        projects = [
            _repository_project(repo)
            for repo in repos[:10]
            if isinstance(repo, dict) and repo.get("name")
        ]
        languages = _unique(tech for project in projects for tech in project.technologies)
        public_repos = _int(user.get("public_repos"))

        highlights: list[str] = []
        if public_repos > 0:
            highlights.append(f"{public_repos} public repositories")
        followers = _int(user.get("followers"))
        if followers > 0:
            highlights.append(f"{followers} followers on GitHub")
        total_stars = sum(project.stars for project in projects)
        if total_stars > 0:
            highlights.append(f"{total_stars} total stars across repositories")
        notable = [project.name for project in projects if project.stars > 0 or project.forks > 0]
        if notable:
            highlights.append(f"Notable projects: {', '.join(notable[:3])}")

        experience = [
            text
            for text in (
                f"Works at {user['company']}" if user.get("company") else "",
                f"Located in {user['location']}" if user.get("location") else "",
                "Open to opportunities" if user.get("hireable") else "",
            )
            if text
        ]
        summary = str(user.get("bio") or f"GitHub developer with {public_repos} repositories")

        return ExtractedProfile(
            source="github",
            url=url,
            success=True,
            summary=summary,
            highlights=highlights,
            skills=languages,
            projects=projects,
            experience=experience,
            profile=UnifiedProfile(
                skills=[ExtractedSkill(name=language) for language in languages],
                links=ProfileLinks(github=url),
            ),
        )

    async def _github_json(self, path: str) -> Any:
        await self._rate_limiter.wait("github")
        resource = await self._fetcher.fetch(f"{self._github_api_url}{path}", accept=GITHUB_ACCEPT)
        return json.loads(resource.text)


def format_external_content(result: ExternalProfileResult) -> str:
    """Render extracted profile content as a section of the scoring prompt."""

    if not result.success:
        return NO_EXTERNAL_CONTENT

    lines = ["## External Profiles & Online Presence", ""]
    for item in result.successful:
        if item.summary:
            lines += [f"**{_SOURCE_LABELS[item.source]}**: {item.summary}", ""]

    skills = result.all_skills
    if skills:
        lines += ["### Skills from Online Profiles", ", ".join(skills), ""]

    if result.total_projects:
        lines.append(f"### Projects Found ({result.total_projects} total)")
        for item in result.successful:
            for project in item.projects[:5]:
                line = f"- **{project.name}**: {project.description or 'No description'}"
                if project.technologies:
                    line += f" ({', '.join(project.technologies)})"
                if project.stars:
                    line += f" [{project.stars} stars]"
                lines.append(line)
        lines.append("")

    highlights = [h for item in result.successful for h in item.highlights]
    if highlights:
        lines.append("### Key Highlights")
        lines += [f"- {highlight}" for highlight in highlights[:10]]

    return "\n".join(lines).strip()


def build_social_insights(result: ExternalProfileResult) -> SocialProfileInsights | None:
    if not result.success:
        return None

    github = result.get("github")
    github_insights = None
    if github is not None:
        github_insights = GitHubInsights(
            repositories=len(github.projects),
            stars=sum(project.stars for project in github.projects),
            languages=_unique(tech for project in github.projects for tech in project.technologies),
            top_projects=github.projects[:5],
            highlights=github.highlights,
        )

    return SocialProfileInsights(
        github=github_insights,
        portfolio=_page_insights(result.get("portfolio")),
        behance=_page_insights(result.get("behance")),
        overall_highlights=[h for item in result.successful for h in item.highlights][:10],
    )


def _page_insights(item: ExtractedProfile | None) -> PortfolioInsights | None:
    if item is None:
        return None
    return PortfolioInsights(
        url=item.url,
        projects=item.projects,
        skills=item.skills,
        highlights=item.highlights,
    )


def _repository_project(repo: dict[str, Any]) -> ProjectInfo:
    language = repo.get("language")
    return ProjectInfo(
        name=str(repo["name"]),
        description=str(repo.get("description") or "No description"),
        technologies=[str(language)] if language else [],
        url=repo.get("html_url"),
        stars=_int(repo.get("stargazers_count")),
        forks=_int(repo.get("forks_count")),
    )


def _int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _unique(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


__all__ = [
    "ExternalProfileExtractor",
    "ExternalProfileResult",
    "ExtractedProfile",
    "build_social_insights",
    "detect_github_url",
    "format_external_content",
]
