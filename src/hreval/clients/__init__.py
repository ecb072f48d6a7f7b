"""External AI service clients."""

from __future__ import annotations

from .base import (
    DocumentModelClient,
    SpeechToTextClient,
    SpeechToTextResponse,
    TextModelClient,
)
from .gemini import GeminiModelClient
from .local import PdfDocumentClient
from .whisper import WhisperSpeechClient

__all__ = [
    "DocumentModelClient",
    "GeminiModelClient",
    "PdfDocumentClient",
    "SpeechToTextClient",
    "SpeechToTextResponse",
    "TextModelClient",
    "WhisperSpeechClient",
]
