"""Progress observers for pipeline runs."""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

import structlog

from .schemas import EvaluationProgress


@runtime_checkable
class ProgressReporter(Protocol):
    def report(self, progress: EvaluationProgress) -> None: ...


class NullProgressReporter:
    def report(self, progress: EvaluationProgress) -> None:
        return None


class CallbackProgressReporter:
    """Forwards progress events to a callable.

    Exceptions raised by the callback are logged and never reach the pipeline.
    """

    def __init__(self, callback: Callable[[EvaluationProgress], None]) -> None:
        self._callback = callback
        self._logger = structlog.get_logger(__name__)

    def report(self, progress: EvaluationProgress) -> None:
        try:
            self._callback(progress)
        except Exception as exc:  # noqa: BLE001
            self._logger.warning(
                "progress.callback_failed", stage=progress.stage, error=str(exc)
            )


class LoggingProgressReporter:
    """Emits each progress event as a structured log line."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger(__name__)

    def report(self, progress: EvaluationProgress) -> None:
        self._logger.info(
            "pipeline.progress",
            stage=progress.stage,
            progress=progress.progress,
            step=progress.current_step,
            error=progress.error,
        )


__all__ = [
    "CallbackProgressReporter",
    "LoggingProgressReporter",
    "NullProgressReporter",
    "ProgressReporter",
]
