from __future__ import annotations

import json
from typing import Any, Callable, Union

import pytest

from hreval.clients.base import SpeechToTextResponse
from hreval.errors import FetchError, TranscriptionServiceError
from hreval.fetch import FetchedResource
from hreval.schemas import EvaluationInput

Response = Union[str, BaseException, Callable[[str], str]]


class FakeTextModel:
    """Routes prompts to canned responses by a marker substring."""

    def __init__(self, routes: dict[str, Response] | None = None, default: Response = "") -> None:
        self.routes = dict(routes or {})
        self.default = default
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.default
        for marker, candidate in self.routes.items():
            if marker in prompt:
                response = candidate
                break
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(prompt)
        return response

    def calls_matching(self, marker: str) -> list[str]:
        return [prompt for prompt in self.prompts if marker in prompt]


class FakeFetcher:
    def __init__(self, resources: dict[str, FetchedResource | BaseException] | None = None) -> None:
        self.resources = dict(resources or {})
        self.requested: list[str] = []

    async def fetch(self, url: str, *, accept: str = "*/*") -> FetchedResource:
        self.requested.append(url)
        resource = self.resources.get(url)
        if resource is None:
            raise FetchError(f"Failed to fetch {url}: 404 Not Found", url=url, status_code=404)
        if isinstance(resource, BaseException):
            raise resource
        return resource


class FakeSpeechClient:
    """Returns transcripts keyed by the audio payload."""

    def __init__(self, transcripts: dict[bytes, SpeechToTextResponse | BaseException]) -> None:
        self.transcripts = transcripts
        self.calls: list[tuple[bytes, str]] = []

    async def transcribe(self, audio: bytes, mime_type: str) -> SpeechToTextResponse:
        self.calls.append((audio, mime_type))
        result = self.transcripts.get(audio)
        if result is None:
            raise TranscriptionServiceError(
                "Transcription failed with status 500: boom", status_code=500, body="boom"
            )
        if isinstance(result, BaseException):
            raise result
        return result


class FakeDocumentClient:
    def __init__(self, text: str | BaseException = "Résumé text") -> None:
        self.text = text
        self.calls: list[tuple[bytes, str]] = []

    async def extract_text(self, document: bytes, mime_type: str, instructions: str) -> str:
        self.calls.append((document, mime_type))
        if isinstance(self.text, BaseException):
            raise self.text
        return self.text


def audio(url: str, content: bytes, content_type: str = "audio/webm") -> FetchedResource:
    return FetchedResource(url=url, content=content, content_type=content_type)


SCORING_MARKER = "You are an expert HR evaluator"
RECOMMENDATION_MARKER = "Based on this candidate evaluation"
CLEANING_MARKER = "You clean up interview transcripts"
ANALYSIS_MARKER = "Analyze this voice response"
RESUME_MARKER = "You are an expert HR résumé parser"
PORTFOLIO_MARKER = "Analyze this portfolio page"


def scoring_payload(**overrides: Any) -> str:
    payload: dict[str, Any] = {
        "criteria_matches": [
            {"name": "Python", "matched": True, "score": 90, "weight": 10, "reason": "Strong"},
            {"name": "Communication", "matched": True, "score": 70, "weight": 5},
        ],
        "strengths": ["Solid backend experience"],
        "weaknesses": ["Limited leadership"],
        "red_flags": [],
        "summary": "Good fit for the role.",
        "why_section": "Matched 83% because: strong Python.",
    }
    payload.update(overrides)
    return json.dumps(payload)


def recommendation_payload(**overrides: Any) -> str:
    payload: dict[str, Any] = {
        "recommendation": "hire",
        "confidence": 88,
        "reason": "Strong technical match.",
        "suggested_questions": ["Tell us about a hard bug."],
        "next_best_action": "Schedule technical interview",
    }
    payload.update(overrides)
    return json.dumps(payload)


def build_input(**overrides: Any) -> EvaluationInput:
    data: dict[str, Any] = {
        "applicant_id": "A-001",
        "job_id": "JOB-001",
        "personal_data": {
            "name": "Sara Ali",
            "email": "sara@example.com",
            "years_of_experience": 4,
            "salary_expectation": 12_000,
        },
        "job_criteria": {
            "title": "Backend Engineer",
            "description": "Build APIs.",
            "min_experience": 3,
            "skills": [
                {"name": "Python", "importance": "required", "type": "technical"},
                {"name": "Docker", "importance": "preferred"},
            ],
            "salary_max": 15_000,
        },
    }
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return EvaluationInput.model_validate(data)


@pytest.fixture
def text_model_factory() -> type[FakeTextModel]:
    return FakeTextModel


@pytest.fixture
def fetcher_factory() -> type[FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def speech_client_factory() -> type[FakeSpeechClient]:
    return FakeSpeechClient


@pytest.fixture
def document_client_factory() -> type[FakeDocumentClient]:
    return FakeDocumentClient


@pytest.fixture
def input_factory() -> Callable[..., EvaluationInput]:
    return build_input


@pytest.fixture
def audio_resource() -> Callable[..., FetchedResource]:
    return audio


@pytest.fixture
def markers() -> dict[str, str]:
    return {
        "scoring": SCORING_MARKER,
        "recommendation": RECOMMENDATION_MARKER,
        "cleaning": CLEANING_MARKER,
        "analysis": ANALYSIS_MARKER,
        "resume": RESUME_MARKER,
        "portfolio": PORTFOLIO_MARKER,
    }


@pytest.fixture
def payloads() -> dict[str, Callable[..., str]]:
    return {"scoring": scoring_payload, "recommendation": recommendation_payload}
