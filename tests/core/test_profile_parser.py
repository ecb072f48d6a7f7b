from __future__ import annotations

import json

import pytest

from hreval.core.profile import ProfileParser, merge_profiles, normalize_profile
from hreval.errors import FetchError, ParseError
from hreval.fetch import FetchedResource
from hreval.schemas import (
    ExtractedSkill,
    LanguageSkill,
    ProfileLinks,
    UnifiedProfile,
    WorkExperience,
)

RESUME_URL = "https://files.example.com/cv.pdf"
PORTFOLIO_URL = "https://sara.dev"

RESUME_JSON = json.dumps(
    {
        "summary": "Backend engineer with four years of Python.",
        "skills": [
            {"name": "Python", "category": "technical", "proficiency": "expert"},
            {"name": "Teamwork", "category": "soft", "proficiency": "guru"},
            {"name": ""},
        ],
        "experience": [
            {"title": "Engineer", "company": "Acme", "start_date": "2020-01", "is_current": True},
            {"title": "", "company": "Ghost"},
        ],
        "education": [{"degree": "BSc", "institution": "Cairo University", "field": "CS"}],
        "languages": [{"language": "Arabic", "proficiency": "native"}],
        "certifications": ["AWS SAA", None],
        "links": {"github": "https://github.com/sara", "other": ["https://blog.sara.dev"]},
    }
)


def build_parser(fetcher, document_client, text_model, **kwargs) -> ProfileParser:
    return ProfileParser(fetcher, document_client, text_model, **kwargs)


@pytest.mark.asyncio
async def test_parse_resume_builds_normalized_profile(
    fetcher_factory, document_client_factory, text_model_factory, markers
):
    fetcher = fetcher_factory(
        {RESUME_URL: FetchedResource(RESUME_URL, b"%PDF-1.7", "application/octet-stream")}
    )
    document_client = document_client_factory("Sara Ali\nBackend engineer")
    model = text_model_factory({markers["resume"]: f"```json\n{RESUME_JSON}\n```"})
    parser = build_parser(fetcher, document_client, model)

    outcome = await parser.parse_resume(RESUME_URL)

    assert outcome.parsed
    assert outcome.raw_text == "Sara Ali\nBackend engineer"
    assert document_client.calls == [(b"%PDF-1.7", "application/pdf")]
    assert "Sara Ali\nBackend engineer" in model.prompts[0]
    profile = outcome.profile
    assert profile is not None
    assert [s.name for s in profile.skills] == ["Python", "Teamwork"]
    assert profile.skills[1].proficiency == "intermediate"
    assert [e.company for e in profile.experience] == ["Acme"]
    assert profile.experience[0].is_current
    assert profile.certifications == ["AWS SAA"]
    assert profile.links.github == "https://github.com/sara"


@pytest.mark.asyncio
async def test_parse_resume_propagates_fetch_failure(
    fetcher_factory, document_client_factory, text_model_factory
):
    parser = build_parser(fetcher_factory(), document_client_factory(), text_model_factory())
    with pytest.raises(FetchError):
        await parser.parse_resume(RESUME_URL)


@pytest.mark.asyncio
async def test_parse_resume_rejects_non_object_payload(
    fetcher_factory, document_client_factory, text_model_factory, markers
):
    fetcher = fetcher_factory({RESUME_URL: FetchedResource(RESUME_URL, b"%PDF", "application/pdf")})
    parser = build_parser(
        fetcher, document_client_factory(), text_model_factory({markers["resume"]: "[1, 2]"})
    )
    with pytest.raises(ParseError):
        await parser.parse_resume(RESUME_URL)


@pytest.mark.asyncio
async def test_parse_portfolio_maps_skills_and_tools(
    fetcher_factory, document_client_factory, text_model_factory, markers
):
    html = "<html>" + "x" * 100 + "</html>"
    fetcher = fetcher_factory({PORTFOLIO_URL: FetchedResource(PORTFOLIO_URL, html.encode(), "text/html")})
    model = text_model_factory(
        {
            markers["portfolio"]: json.dumps(
                {"skills": ["Branding"], "tools": ["Figma"], "summary": "Brand designer"}
            )
        }
    )
    parser = build_parser(fetcher, document_client_factory(), model, portfolio_char_limit=20)

    outcome = await parser.parse_portfolio(PORTFOLIO_URL, source="behance")

    assert outcome.parsed
    assert outcome.source == "behance"
    profile = outcome.profile
    assert profile is not None
    assert [(s.name, s.category, s.proficiency) for s in profile.skills] == [
        ("Branding", "technical", "advanced"),
        ("Figma", "tool", "intermediate"),
    ]
    assert profile.links.behance == PORTFOLIO_URL
    assert profile.links.portfolio is None
    assert html[:20] in model.prompts[0]
    assert html[:21] not in model.prompts[0]


@pytest.mark.asyncio
async def test_parse_portfolio_collects_projects_and_highlights(
    fetcher_factory, document_client_factory, text_model_factory, markers
):
    fetcher = fetcher_factory({PORTFOLIO_URL: FetchedResource(PORTFOLIO_URL, b"<html/>", "text/html")})
    payload = {
        "skills": ["UX"],
        "project_types": ["Mobile apps", "Dashboards"],
        "projects": [
            {"name": "Wayfinder", "description": "Transit app", "technologies": ["Swift"]},
            {"description": "no name"},
        ],
        "highlights": ["Featured on Dribbble"],
    }
    model = text_model_factory({markers["portfolio"]: json.dumps(payload)})
    parser = build_parser(fetcher, document_client_factory(), model)

    outcome = await parser.parse_portfolio(PORTFOLIO_URL)

    assert outcome.parsed
    assert [(p.name, p.description, p.technologies) for p in outcome.projects] == [
        ("Wayfinder", "Transit app", ["Swift"]),
    ]
    assert outcome.highlights == [
        "Featured on Dribbble",
        "Project types: Mobile apps, Dashboards",
    ]


@pytest.mark.asyncio
async def test_parse_portfolio_never_raises(
    fetcher_factory, document_client_factory, text_model_factory
):
    parser = build_parser(fetcher_factory(), document_client_factory(), text_model_factory())

    outcome = await parser.parse_portfolio(PORTFOLIO_URL)

    assert not outcome.parsed
    assert "404" in (outcome.error or "")


@pytest.mark.asyncio
async def test_parse_linkedin_validates_url(
    fetcher_factory, document_client_factory, text_model_factory
):
    parser = build_parser(fetcher_factory(), document_client_factory(), text_model_factory())

    invalid = await parser.parse_linkedin("https://example.com/sara")
    valid = await parser.parse_linkedin("https://www.linkedin.com/in/sara")

    assert invalid.error == "Invalid LinkedIn URL format"
    assert not valid.parsed
    assert valid.error is not None and "URL saved for reference" in valid.error


def test_merge_profiles_deduplicates_and_prefers_longest_summary():
    resume = UnifiedProfile(
        summary="Short",
        skills=[ExtractedSkill(name="Python")],
        experience=[WorkExperience(title="Engineer", company="Acme")],
        languages=[LanguageSkill(language="Arabic", proficiency="native")],
        links=ProfileLinks(github="https://github.com/sara", other=["https://a"]),
    )
    portfolio = UnifiedProfile(
        summary="A much longer summary",
        skills=[ExtractedSkill(name="python", category="tool"), ExtractedSkill(name="Figma")],
        experience=[WorkExperience(title="engineer", company="ACME")],
        languages=[LanguageSkill(language="arabic")],
        links=ProfileLinks(portfolio="https://sara.dev", github="", other=["https://a", "https://b"]),
    )

    merged = merge_profiles(resume, None, portfolio)

    assert merged.summary == "A much longer summary"
    assert [s.name for s in merged.skills] == ["Python", "Figma"]
    assert merged.skills[0].category == "technical"
    assert len(merged.experience) == 1
    assert merged.languages[0].proficiency == "native"
    assert merged.links.github == "https://github.com/sara"
    assert merged.links.portfolio == "https://sara.dev"
    assert merged.links.other == ["https://a", "https://b"]


def test_merge_profiles_is_idempotent():
    profile = normalize_profile(json.loads(RESUME_JSON))
    once = merge_profiles(profile)
    twice = merge_profiles(once, once)
    assert twice == once


def test_merge_profiles_does_not_alias_inputs():
    source = UnifiedProfile(skills=[ExtractedSkill(name="Python")])
    merged = merge_profiles(source)
    merged.skills[0].proficiency = "expert"
    assert source.skills[0].proficiency == "intermediate"
