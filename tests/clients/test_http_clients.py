from __future__ import annotations

import httpx
import pytest

from hreval.clients import WhisperSpeechClient
from hreval.errors import ConfigurationError, FetchError, TranscriptionServiceError
from hreval.fetch import HttpFetcher


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetcher_returns_content_and_bare_content_type():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, content=b"RIFF", headers={"content-type": "audio/wav; codecs=1"}
        )

    async with mock_client(handler) as client:
        resource = await HttpFetcher(http_client=client).fetch("https://cdn.example.com/a.wav")

    assert resource.content == b"RIFF"
    assert resource.content_type == "audio/wav"


@pytest.mark.asyncio
async def test_fetcher_raises_on_error_status():
    async with mock_client(lambda request: httpx.Response(404)) as client:
        with pytest.raises(FetchError) as excinfo:
            await HttpFetcher(http_client=client).fetch("https://cdn.example.com/missing.webm")

    assert excinfo.value.status_code == 404
    assert excinfo.value.url == "https://cdn.example.com/missing.webm"


@pytest.mark.asyncio
async def test_fetcher_wraps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        with pytest.raises(FetchError):
            await HttpFetcher(http_client=client).fetch("https://cdn.example.com/a.webm")


@pytest.mark.asyncio
async def test_whisper_client_posts_multipart_and_parses_verbose_json():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"text": " Hello there ", "language": "english", "duration": 4.2}
        )

    async with mock_client(handler) as client:
        speech = WhisperSpeechClient("sk-test", base_url="https://stt.local/v1/", http_client=client)
        response = await speech.transcribe(b"audio-bytes", "audio/mp4")

    assert response.text == "Hello there"
    assert response.language == "english"
    assert response.duration == pytest.approx(4.2)
    request = seen[0]
    assert str(request.url) == "https://stt.local/v1/audio/transcriptions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = request.read()
    assert b'filename="audio.m4a"' in body
    assert b"verbose_json" in body


@pytest.mark.asyncio
async def test_whisper_client_raises_on_non_success():
    async with mock_client(lambda request: httpx.Response(429, text="rate limited")) as client:
        speech = WhisperSpeechClient("sk-test", http_client=client)
        with pytest.raises(TranscriptionServiceError) as excinfo:
            await speech.transcribe(b"audio", "audio/webm")

    assert excinfo.value.status_code == 429
    assert excinfo.value.body == "rate limited"


def test_whisper_client_requires_api_key():
    with pytest.raises(ConfigurationError):
        WhisperSpeechClient(None)
