"""OpenAI-compatible speech-to-text client over HTTP."""

from __future__ import annotations

import httpx
import structlog

from ..errors import ConfigurationError, TranscriptionServiceError
from .base import SpeechToTextResponse

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_SPEECH_MODEL = "whisper-1"

_EXTENSIONS: dict[str, str] = {
    "audio/webm": "webm",
    "audio/mp3": "mp3",
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/ogg": "ogg",
    "audio/mp4": "m4a",
    "audio/m4a": "m4a",
}


class WhisperSpeechClient:
    """POSTs audio to an ``/audio/transcriptions`` endpoint."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_SPEECH_MODEL,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY not configured")
        self._api_key = api_key
        self._endpoint = f"{base_url.rstrip('/')}/audio/transcriptions"
        self._model = model
        self._timeout = timeout
        self._http_client = http_client
        self._logger = structlog.get_logger(__name__)

    async def transcribe(self, audio: bytes, mime_type: str) -> SpeechToTextResponse:
        extension = _EXTENSIONS.get(mime_type, "webm")
        files = {"file": (f"audio.{extension}", audio, mime_type)}
        data = {"model": self._model, "response_format": "verbose_json"}
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self._endpoint, files=files, data=data, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(
                        self._endpoint, files=files, data=data, headers=headers
                    )
        except httpx.HTTPError as exc:
            raise TranscriptionServiceError(f"Transcription request failed: {exc}") from exc

        if not response.is_success:
            self._logger.warning(
                "speech.request_failed", status=response.status_code, body=response.text[:500]
            )
            raise TranscriptionServiceError(
                f"Transcription failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise TranscriptionServiceError(
                "Transcription service returned a non-JSON body",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        duration = payload.get("duration")
        return SpeechToTextResponse(
            text=str(payload.get("text") or "").strip(),
            language=payload.get("language"),
            duration=float(duration) if duration is not None else None,
        )
