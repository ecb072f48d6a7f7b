"""Speech transcription stage: audio answer to transcripts and voice signals."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Iterable, Sequence
from urllib.parse import urlparse

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..clients.base import SpeechToTextClient, TextModelClient
from ..errors import EvaluationError, FetchError, ParseError, ServiceError
from ..fetch import HttpFetcher
from ..ratelimit import NoopRateLimiter, RateLimiter
from ..schemas import (
    ConfidenceSignal,
    FluencySignal,
    SentimentSignal,
    TranscriptPair,
    VoiceAnalysis,
    VoiceAnalysisDetail,
    VoiceResponse,
)
from ..schemas.evaluation import round_half_up
from .model_json import parse_model_json

FILLER_PATTERN = re.compile(
    r"\b(umm?|ahh?|uhh?|like|you know|يعني|آه|إيه|امممم)\b",
    re.IGNORECASE,
)

DEFAULT_AUDIO_MIME = "audio/webm"

# Extension or content-type fragment -> mime type sent to the speech service.
_AUDIO_TYPES: tuple[tuple[str, str], ...] = (
    ("webm", "audio/webm"),
    ("mp3", "audio/mp3"),
    ("wav", "audio/wav"),
    ("m4a", "audio/mp4"),
    ("ogg", "audio/ogg"),
)

CLEANING_PROMPT = """You clean up interview transcripts.

Remove filler words and disfluencies (um, uh, ah, like, you know, يعني, آه, إيه) and
repeated false starts, and fix minor grammar mistakes.

Rules:
- Keep the original language. Do NOT translate.
- Keep the speaker's meaning. Do NOT add, summarize or invent content.
- Return ONLY the cleaned transcript text, with no quotes or commentary.

Transcript:
{transcript}
"""

ANALYSIS_PROMPT = """Analyze this voice response from a job interview candidate.

Question asked:
{question}

Candidate's response (cleaned):
{transcript}

Respond ONLY with JSON in this shape:
{{
  "sentiment": {{"score": <number from -1 to 1>, "label": "negative|neutral|positive"}},
  "confidence": {{"score": <number from 0 to 100>, "indicators": ["<confidence or hesitation cue>"]}},
  "key_phrases": ["<3-5 important phrases from the response>"]
}}
"""


def count_filler_words(text: str) -> int:
    """Count filler words (English and Arabic) in a verbatim transcript."""

    return len(FILLER_PATTERN.findall(text or ""))


def fluency_score(filler_count: int) -> int:
    return max(0, 100 - 5 * filler_count)


def words_per_minute(text: str, duration: float | None) -> int | None:
    if not duration:
        return None
    word_count = len(text.split())
    return round_half_up(word_count / duration * 60)


def audio_mime_type(url: str, content_type: str | None) -> str:
    """Pick the mime type for an audio file from its URL or response header."""

    path = urlparse(url).path.lower()
    header = (content_type or "").lower()
    for extension, mime in _AUDIO_TYPES:
        if path.endswith(f".{extension}") or extension in header:
            return mime
    return header or DEFAULT_AUDIO_MIME


class _AnalysisPayload(BaseModel):
    sentiment: SentimentSignal = Field(default_factory=SentimentSignal)
    confidence: ConfidenceSignal = Field(default_factory=ConfidenceSignal)
    key_phrases: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("sentiment", "confidence", mode="before")
    @classmethod
    def _default_signal(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("key_phrases", mode="before")
    @classmethod
    def _coerce_phrases(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item]


@dataclass(slots=True, frozen=True)
class TranscriptionResult:
    """Raw and cleaned transcript of one audio file."""

    raw_transcript: str
    clean_transcript: str
    language: str | None = None
    duration: float | None = None


@dataclass(slots=True)
class TranscriptionOutcome:
    """Per-question result of the transcription stage; failures carry ``error``."""

    question_id: str
    question_text: str
    question_weight: int
    raw_transcript: str = ""
    clean_transcript: str = ""
    language: str | None = None
    duration: float | None = None
    analysis: VoiceAnalysis | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_pair(self) -> TranscriptPair:
        return TranscriptPair(
            question_id=self.question_id,
            raw_transcript=self.raw_transcript,
            clean_transcript=self.clean_transcript,
        )

    def to_detail(self) -> VoiceAnalysisDetail:
        return VoiceAnalysisDetail(
            question_id=self.question_id,
            question_text=self.question_text,
            question_weight=self.question_weight,
            raw_transcript=self.raw_transcript,
            clean_transcript=self.clean_transcript,
            analysis=self.analysis,
        )


class TranscriptionStage:
    """Fetches, transcribes, cleans and analyzes recorded answers."""

    def __init__(
        self,
        fetcher: HttpFetcher,
        speech_client: SpeechToTextClient,
        text_model: TextModelClient,
        *,
        rate_limiter: RateLimiter | None = None,
        concurrency: int = 3,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._fetcher = fetcher
        self._speech_client = speech_client
        self._text_model = text_model
        self._rate_limiter = rate_limiter or NoopRateLimiter()
        self._concurrency = concurrency
        self._logger = structlog.get_logger(__name__)

    async def fetch_audio(self, audio_url: str) -> tuple[bytes, str]:
        resource = await self._fetcher.fetch(audio_url, accept="audio/*,*/*")
        if not resource.content:
            raise FetchError("Downloaded audio file is empty", url=audio_url)
        return resource.content, audio_mime_type(audio_url, resource.content_type)

    async def transcribe(self, audio_url: str) -> TranscriptionResult:
        audio, mime_type = await self.fetch_audio(audio_url)
        response = await self._speech_client.transcribe(audio, mime_type)
        raw = response.text.strip()
        clean = await self.clean_transcript(raw)
        return TranscriptionResult(
            raw_transcript=raw,
            clean_transcript=clean,
            language=response.language,
            duration=response.duration,
        )

    async def clean_transcript(self, raw: str) -> str:
        """Return the filler-free transcript, or ``raw`` when cleaning fails."""

        if not raw:
            return raw
        try:
            cleaned = await self._text_model.generate(CLEANING_PROMPT.format(transcript=raw))
        except ServiceError as exc:
            self._logger.warning("transcription.cleaning_failed", error=exc.message)
            return raw
        cleaned = cleaned.strip().strip('"').strip()
        return cleaned or raw

    async def analyze(
        self,
        raw: str,
        clean: str,
        question_text: str,
        duration: float | None = None,
    ) -> VoiceAnalysis | None:
        """Derive voice signals; returns None when the model call fails."""

        filler_count = count_filler_words(raw)
        fluency = FluencySignal(
            score=fluency_score(filler_count),
            words_per_minute=words_per_minute(clean, duration),
            filler_word_count=filler_count,
        )
        prompt = ANALYSIS_PROMPT.format(question=question_text, transcript=clean)
        try:
            payload = parse_model_json(await self._text_model.generate(prompt), _AnalysisPayload)
        except (ServiceError, ParseError) as exc:
            self._logger.warning("transcription.analysis_failed", error=exc.message)
            return None

        return VoiceAnalysis(
            sentiment=payload.sentiment,
            confidence=payload.confidence,
            fluency=fluency,
            key_phrases=payload.key_phrases[:5],
        )

    async def process(self, response: VoiceResponse) -> TranscriptionOutcome:
        outcome = TranscriptionOutcome(
            question_id=response.question_id,
            question_text=response.question_text,
            question_weight=response.question_weight,
        )
        try:
            result = await self.transcribe(response.audio_url)
        except EvaluationError as exc:
            self._logger.warning(
                "transcription.failed",
                question_id=response.question_id,
                error_code=exc.code,
                error=exc.message,
            )
            outcome.error = exc.message
            return outcome
        except Exception as exc:  # noqa: BLE001
            self._logger.exception(
                "transcription.crashed", question_id=response.question_id, error=str(exc)
            )
            outcome.error = str(exc) or type(exc).__name__
            return outcome

        outcome.raw_transcript = result.raw_transcript
        outcome.clean_transcript = result.clean_transcript
        outcome.language = result.language
        outcome.duration = result.duration
        if result.clean_transcript:
            outcome.analysis = await self.analyze(
                result.raw_transcript,
                result.clean_transcript,
                response.question_text,
                result.duration,
            )
        return outcome

    async def transcribe_batch(
        self, responses: Sequence[VoiceResponse]
    ) -> dict[str, TranscriptionOutcome]:
        """Process answers in chunks; chunk members run concurrently."""

        results: dict[str, TranscriptionOutcome] = {}
        chunks = list(_chunked(responses, self._concurrency))
        for index, chunk in enumerate(chunks):
            if index > 0:
                await self._rate_limiter.wait("transcription")
            outcomes = await asyncio.gather(*(self.process(item) for item in chunk))
            for outcome in outcomes:
                results[outcome.question_id] = outcome

        failed = sum(1 for outcome in results.values() if not outcome.success)
        self._logger.info(
            "transcription.batch_complete",
            total=len(results),
            succeeded=len(results) - failed,
            failed=failed,
        )
        return results


def _chunked(items: Sequence[VoiceResponse], size: int) -> Iterable[Sequence[VoiceResponse]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


__all__ = [
    "FILLER_PATTERN",
    "TranscriptionOutcome",
    "TranscriptionResult",
    "TranscriptionStage",
    "audio_mime_type",
    "count_filler_words",
    "fluency_score",
    "words_per_minute",
]
