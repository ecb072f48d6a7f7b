from __future__ import annotations

import pytest
from pydantic import ValidationError

from hreval.schemas.config import AppConfig, load_config


def test_load_config_keeps_only_explicit_values():
    app_config = load_config(
        {
            "document_extractor": "local",
            "pipeline": {"stage_delay_seconds": 0, "transcription_concurrency": 2},
        }
    )
    assert isinstance(app_config, AppConfig)
    settings = app_config.to_settings()
    assert settings == {
        "document_extractor": "local",
        "pipeline": {"stage_delay_seconds": 0, "transcription_concurrency": 2},
    }


def test_load_config_rejects_non_mapping():
    with pytest.raises(ValidationError):
        load_config(["not", "a", "mapping"])


def test_load_config_rejects_unknown_extractor():
    with pytest.raises(ValidationError):
        load_config({"document_extractor": "ocr"})


def test_load_config_rejects_zero_concurrency():
    with pytest.raises(ValidationError):
        load_config({"pipeline": {"transcription_concurrency": 0}})
