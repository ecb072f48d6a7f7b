"""Google Gemini implementation of the text and document capabilities."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import ConfigurationError, ServiceError

DEFAULT_TEXT_MODEL = "gemini-2.5-flash-lite"
DEFAULT_DOCUMENT_MODEL = "gemini-2.0-flash-lite"


class GeminiModelClient:
    """Async Gemini client implementing TextModelClient and DocumentModelClient."""

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = DEFAULT_TEXT_MODEL,
        document_model: str = DEFAULT_DOCUMENT_MODEL,
        temperature: float | None = None,
        client: Any | None = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ConfigurationError("GOOGLE_API_KEY not configured")
            client = genai.Client(api_key=api_key)
        self._client = client
        self._model = model
        self._document_model = document_model
        self._temperature = temperature
        self._logger = structlog.get_logger(__name__)

    async def generate(self, prompt: str) -> str:
        return await self._generate(self._model, [prompt])

    async def extract_text(self, document: bytes, mime_type: str, instructions: str) -> str:
        part = types.Part.from_bytes(data=document, mime_type=mime_type)
        return await self._generate(self._document_model, [instructions, part])

    async def _generate(self, model: str, contents: list[Any]) -> str:
        config = (
            types.GenerateContentConfig(temperature=self._temperature)
            if self._temperature is not None
            else None
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as exc:
            self._logger.warning(
                "gemini.request_failed", model=model, status=exc.code, error=exc.message
            )
            raise ServiceError(
                f"Gemini request failed ({exc.code}): {exc.message}",
                status_code=exc.code,
                body=exc.message,
            ) from exc
        except httpx.HTTPError as exc:
            self._logger.warning("gemini.request_failed", model=model, error=str(exc))
            raise ServiceError(f"Gemini request failed: {exc}") from exc
        return (response.text or "").strip()
