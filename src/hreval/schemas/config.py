"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError


class ModelConfig(BaseModel):
    text_model: str | None = None
    document_model: str | None = None
    speech_model: str | None = None
    speech_base_url: str | None = None
    timeout: float | None = None


class PipelineConfig(BaseModel):
    transcription_concurrency: int | None = Field(default=None, ge=1)
    chunk_delay_seconds: float | None = Field(default=None, ge=0)
    stage_delay_seconds: float | None = Field(default=None, ge=0)
    batch_delay_seconds: float | None = Field(default=None, ge=0)
    portfolio_char_limit: int | None = Field(default=None, ge=1)
    profile_request_interval_seconds: float | None = Field(default=None, ge=0)


class AppConfig(BaseModel):
    models: ModelConfig = Field(default_factory=ModelConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    document_extractor: Literal["gemini", "local"] = "gemini"

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {"document_extractor": self.document_extractor}
        model_settings = self.models.model_dump(exclude_none=True)
        if model_settings:
            settings["models"] = model_settings
        pipeline_settings = self.pipeline.model_dump(exclude_none=True)
        if pipeline_settings:
            settings["pipeline"] = pipeline_settings
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
