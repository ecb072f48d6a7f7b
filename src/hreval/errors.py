"""Exception hierarchy for the evaluation pipeline."""

from __future__ import annotations

from typing import Any


class EvaluationError(Exception):
    """Base class for every error raised by the pipeline.

    Attributes:
        code: short machine-readable identifier.
        message: human-readable message, used verbatim in failed outcomes.
        details: extra context for logs.
    """

    code = "EVAL_ERROR"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class FetchError(EvaluationError):
    """An external resource (audio, document, web page) was unreachable or empty."""

    code = "FETCH_ERROR"

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = {"url": url, "status_code": status_code}
        merged.update(details or {})
        super().__init__(message, details=merged)
        self.url = url
        self.status_code = status_code


class ServiceError(EvaluationError):
    """An external service answered with a non-success response."""

    code = "SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = {"status_code": status_code, "body": body}
        merged.update(details or {})
        super().__init__(message, details=merged)
        self.status_code = status_code
        self.body = body


class TranscriptionServiceError(ServiceError):
    """The speech-to-text service rejected a transcription request."""

    code = "TRANSCRIPTION_ERROR"


class ParseError(EvaluationError):
    """Model output could not be parsed into the expected structure."""

    code = "PARSE_ERROR"


class ScoringError(ParseError):
    """The scoring model returned a malformed evaluation."""

    code = "SCORING_ERROR"


class ConfigurationError(EvaluationError):
    """A required credential or setting is missing."""

    code = "CONFIG_ERROR"


__all__ = [
    "EvaluationError",
    "FetchError",
    "ServiceError",
    "TranscriptionServiceError",
    "ParseError",
    "ScoringError",
    "ConfigurationError",
]
