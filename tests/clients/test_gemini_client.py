from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from google.genai import errors as genai_errors

from hreval.clients import GeminiModelClient
from hreval.errors import ConfigurationError, ServiceError


class FakeModels:
    def __init__(self, text: str | None = None, error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_genai(models: FakeModels) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(models=models))


@pytest.mark.asyncio
async def test_generate_uses_text_model_and_strips_output():
    models = FakeModels(text="  cleaned answer \n")
    client = GeminiModelClient(None, model="text-model", client=fake_genai(models))

    assert await client.generate("prompt") == "cleaned answer"
    assert models.calls[0]["model"] == "text-model"
    assert models.calls[0]["contents"] == ["prompt"]


@pytest.mark.asyncio
async def test_extract_text_uses_document_model():
    models = FakeModels(text="Résumé body")
    client = GeminiModelClient(None, document_model="doc-model", client=fake_genai(models))

    assert await client.extract_text(b"%PDF", "application/pdf", "Extract") == "Résumé body"
    call = models.calls[0]
    assert call["model"] == "doc-model"
    assert call["contents"][0] == "Extract"


@pytest.mark.asyncio
async def test_api_errors_become_service_errors():
    error = genai_errors.APIError(503, {"error": {"message": "overloaded", "status": "UNAVAILABLE"}})
    client = GeminiModelClient(None, client=fake_genai(FakeModels(error=error)))

    with pytest.raises(ServiceError) as excinfo:
        await client.generate("prompt")

    assert excinfo.value.status_code == 503


def test_missing_api_key_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        GeminiModelClient(None)


@pytest.mark.asyncio
async def test_transport_errors_become_service_errors():
    error = httpx.ConnectTimeout("timed out")
    client = GeminiModelClient(None, client=fake_genai(FakeModels(error=error)))

    with pytest.raises(ServiceError, match="timed out"):
        await client.generate("prompt")
