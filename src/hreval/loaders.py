"""File-based input loading and result persistence for the CLI."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from .schemas import EvaluationInput


class InputLoadError(ValueError):
    """Raised when input loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[EvaluationInput]):
        super().__init__("Input loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Input loading failed: {self.errors}"


def load_evaluation_input(path: Path) -> EvaluationInput:
    """Load a single evaluation input from a JSON document."""

    with path.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid input JSON: {exc}") from exc
    return EvaluationInput.model_validate(data)


class JsonlInputStore:
    """Evaluation inputs read from a JSONL file, looked up by applicant and job.

    Instances are callable with ``(applicant_id, job_id)`` so they can be used
    directly as a batch loader.
    """

    def __init__(self, records: list[EvaluationInput]):
        self._records = {(record.applicant_id, record.job_id): record for record in records}

    @classmethod
    def from_path(cls, path: Path) -> "JsonlInputStore":
        records: list[EvaluationInput] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                try:
                    records.append(EvaluationInput.model_validate(record))
                except ValidationError as exc:
                    errors.append(f"line {idx}: {exc.error_count()} validation error(s)")
        if errors:
            raise InputLoadError(errors, records)
        return cls(records)

    def applicant_ids(self, job_id: str) -> list[str]:
        return [applicant for applicant, job in self._records if job == job_id]

    def __call__(self, applicant_id: str, job_id: str) -> EvaluationInput | None:
        return self._records.get((applicant_id, job_id))


class OutputWriter:
    """Persist evaluation outcomes."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")


__all__ = [
    "AuditLogger",
    "InputLoadError",
    "JsonlInputStore",
    "OutputWriter",
    "load_evaluation_input",
]
