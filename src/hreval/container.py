"""Dependency injection container for the evaluation system."""

from __future__ import annotations

import copy
from typing import Any

from dependency_injector import containers, providers

from .clients import GeminiModelClient, PdfDocumentClient, WhisperSpeechClient
from .clients.gemini import DEFAULT_DOCUMENT_MODEL, DEFAULT_TEXT_MODEL
from .clients.whisper import DEFAULT_BASE_URL, DEFAULT_SPEECH_MODEL
from .core import (
    ProfileParser,
    RecommendationGenerator,
    ScoringEngine,
    TranscriptionStage,
)
from .core.external import ExternalProfileExtractor
from .core.profile import DEFAULT_PORTFOLIO_CHAR_LIMIT
from .fetch import HttpFetcher
from .pipeline import BatchCoordinator, EvaluationPipeline
from .ratelimit import build_interval_limiter, build_rate_limiter
from .settings import ProviderSettings

DEFAULT_SETTINGS: dict[str, Any] = {
    "document_extractor": "gemini",
    "models": {
        "text_model": DEFAULT_TEXT_MODEL,
        "document_model": DEFAULT_DOCUMENT_MODEL,
        "speech_model": DEFAULT_SPEECH_MODEL,
        "speech_base_url": DEFAULT_BASE_URL,
        "timeout": 60.0,
    },
    "pipeline": {
        "transcription_concurrency": 3,
        "chunk_delay_seconds": 3.0,
        "stage_delay_seconds": 2.5,
        "batch_delay_seconds": 0.5,
        "portfolio_char_limit": DEFAULT_PORTFOLIO_CHAR_LIMIT,
        "profile_request_interval_seconds": 0.5,
    },
}


class EvaluationContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    provider_settings = providers.Singleton(ProviderSettings)

    fetcher = providers.Singleton(HttpFetcher, timeout=config.models.timeout)

    text_model = providers.Singleton(
        GeminiModelClient,
        api_key=provider_settings.provided.google_api_key,
        model=config.models.text_model,
        document_model=config.models.document_model,
    )

    local_document_client = providers.Singleton(PdfDocumentClient)

    document_client = providers.Selector(
        config.document_extractor,
        gemini=text_model,
        local=local_document_client,
    )

    speech_client = providers.Singleton(
        WhisperSpeechClient,
        api_key=provider_settings.provided.openai_api_key,
        base_url=config.models.speech_base_url,
        model=config.models.speech_model,
        timeout=config.models.timeout,
    )

    chunk_rate_limiter = providers.Factory(
        build_rate_limiter, config.pipeline.chunk_delay_seconds
    )
    stage_rate_limiter = providers.Factory(
        build_rate_limiter, config.pipeline.stage_delay_seconds
    )
    profile_rate_limiter = providers.Factory(
        build_interval_limiter, config.pipeline.profile_request_interval_seconds
    )

    transcription_stage = providers.Factory(
        TranscriptionStage,
        fetcher=fetcher,
        speech_client=speech_client,
        text_model=text_model,
        rate_limiter=chunk_rate_limiter,
        concurrency=config.pipeline.transcription_concurrency,
    )

    profile_parser = providers.Factory(
        ProfileParser,
        fetcher=fetcher,
        document_client=document_client,
        text_model=text_model,
        portfolio_char_limit=config.pipeline.portfolio_char_limit,
    )

    external_extractor = providers.Factory(
        ExternalProfileExtractor,
        fetcher=fetcher,
        profile_parser=profile_parser,
        rate_limiter=profile_rate_limiter,
    )

    scoring_engine = providers.Factory(ScoringEngine, text_model=text_model)

    recommender = providers.Factory(RecommendationGenerator, text_model=text_model)

    pipeline = providers.Factory(
        EvaluationPipeline,
        transcription=transcription_stage,
        profile_parser=profile_parser,
        external_extractor=external_extractor,
        scoring_engine=scoring_engine,
        recommender=recommender,
        rate_limiter=stage_rate_limiter,
    )

    batch_coordinator = providers.Factory(
        BatchCoordinator,
        pipeline=pipeline,
        delay_seconds=config.pipeline.batch_delay_seconds,
    )


def create_container(
    *,
    settings: dict | None = None,
    provider_settings: ProviderSettings | None = None,
) -> EvaluationContainer:
    """Instantiate container with optional overrides."""

    container = EvaluationContainer()
    merged = copy.deepcopy(DEFAULT_SETTINGS)
    if isinstance(settings, dict):
        _deep_update(merged, settings)
    container.config.from_dict(merged)

    if provider_settings is not None:
        container.provider_settings.override(providers.Object(provider_settings))

    return container


def _deep_update(target: dict[str, Any], updates: dict[str, Any]) -> None:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
