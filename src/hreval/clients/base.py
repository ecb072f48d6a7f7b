"""Capability interfaces for external AI services.

Each interface covers one capability so that any provider can be swapped in
behind it, and so the pipeline can be exercised with in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(slots=True, frozen=True)
class SpeechToTextResponse:
    """Successful speech-to-text payload."""

    text: str
    language: str | None = None
    duration: float | None = None


@runtime_checkable
class SpeechToTextClient(Protocol):
    """Turns audio bytes into a verbatim transcript."""

    async def transcribe(self, audio: bytes, mime_type: str) -> SpeechToTextResponse:
        """Raise TranscriptionServiceError on a non-success response."""


@runtime_checkable
class TextModelClient(Protocol):
    """Free-form text generation used for cleaning, analysis, scoring and recommendations."""

    async def generate(self, prompt: str) -> str:
        """Return the raw model text; raise ServiceError on provider failure."""


@runtime_checkable
class DocumentModelClient(Protocol):
    """Reads an inline document (PDF, image) and returns its text."""

    async def extract_text(self, document: bytes, mime_type: str, instructions: str) -> str:
        """Return the extracted text; raise ServiceError on provider failure."""
