"""Typer CLI entrypoint for the evaluation pipeline."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, List, Optional

import pendulum
import typer
import yaml
from pydantic import ValidationError

from . import __version__
from .container import create_container
from .errors import EvaluationError
from .loaders import (
    AuditLogger,
    InputLoadError,
    JsonlInputStore,
    OutputWriter,
    load_evaluation_input,
)
from .logging import configure_logging
from .progress import LoggingProgressReporter
from .schemas import EvaluationOutcome
from .schemas.config import load_config

app = typer.Typer(help="Candidate evaluation CLI.")


def _load_settings(config: Optional[Path]) -> dict[str, Any]:
    if not config:
        return {}
    with config.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    try:
        return load_config(loaded).to_settings()
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid config: {exc}", param_hint="config") from exc


def _metadata(**extra: Any) -> dict[str, Any]:
    return {
        "timestamp": pendulum.now().to_iso8601_string(),
        "app_version": __version__,
        **extra,
    }


def _audit_record(applicant_id: str, outcome: EvaluationOutcome) -> dict[str, Any]:
    evaluation = outcome.evaluation
    return {
        "applicant_id": applicant_id,
        "job_id": evaluation.job_id if evaluation else None,
        "success": outcome.success,
        "error": outcome.error,
        "overall_score": evaluation.overall_score if evaluation else None,
        "recommendation": evaluation.recommendation if evaluation else None,
        "red_flags": evaluation.red_flags if evaluation else [],
        "processing_time_ms": outcome.processing_time_ms,
    }


@app.command()
def evaluate(
    input_path: Path = typer.Option(..., "--input", exists=True, readable=True, dir_okay=False, help="Evaluation input JSON path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
) -> None:
    """Evaluate a single applicant."""
    settings = _load_settings(config)
    configure_logging(log_level)

    try:
        evaluation_input = load_evaluation_input(input_path)
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(str(exc), param_hint="input") from exc

    try:
        pipeline = create_container(settings=settings).pipeline()
    except EvaluationError as exc:
        typer.echo(f"Configuration error: {exc.message}", err=True)
        raise typer.Exit(code=2) from exc

    outcome = asyncio.run(pipeline.evaluate(evaluation_input, LoggingProgressReporter()))

    if audit_log:
        AuditLogger(audit_log).append(_audit_record(evaluation_input.applicant_id, outcome))

    OutputWriter().write(
        output,
        {
            "metadata": _metadata(
                applicant_id=evaluation_input.applicant_id, job_id=evaluation_input.job_id
            ),
            "result": outcome.model_dump(mode="json"),
        },
    )

    evaluation = outcome.evaluation
    if not outcome.success or evaluation is None:
        typer.echo(f"Evaluation failed: {outcome.error}", err=True)
        raise typer.Exit(code=1)
    typer.echo(
        f"Scored {evaluation.overall_score}% ({evaluation.recommendation}). "
        f"Results saved to {output}."
    )


@app.command()
def batch(
    inputs: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Evaluation inputs JSONL path."),
    job_id: str = typer.Option(..., help="Job id to evaluate applicants for."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    applicant: Optional[List[str]] = typer.Option(
        None, help="Applicant id to evaluate (repeatable). Defaults to every applicant for the job."
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
) -> None:
    """Evaluate many applicants for one job."""
    settings = _load_settings(config)
    configure_logging(log_level)

    load_errors: list[str] = []
    try:
        store = JsonlInputStore.from_path(inputs)
    except InputLoadError as exc:
        load_errors.extend(exc.errors)
        store = JsonlInputStore(exc.partial)

    applicant_ids = list(applicant) if applicant else store.applicant_ids(job_id)

    try:
        coordinator = create_container(settings=settings).batch_coordinator()
    except EvaluationError as exc:
        typer.echo(f"Configuration error: {exc.message}", err=True)
        raise typer.Exit(code=2) from exc

    audit_logger = AuditLogger(audit_log) if audit_log else None
    outcomes: dict[str, dict[str, Any]] = {}

    def record(applicant_id: str, outcome: EvaluationOutcome) -> None:
        outcomes[applicant_id] = outcome.model_dump(mode="json")
        if audit_logger:
            audit_logger.append(_audit_record(applicant_id, outcome))

    result = asyncio.run(coordinator.run(job_id, applicant_ids, store, on_result=record))

    OutputWriter().write(
        output,
        {
            "metadata": _metadata(
                job_id=job_id, applicant_count=len(applicant_ids), errors=load_errors
            ),
            "summary": result.model_dump(mode="json"),
            "results": outcomes,
        },
    )
    typer.echo(
        f"Processed {result.total_processed} applicants ({result.total_failed} failed). "
        f"Results saved to {output}."
    )
    if result.total_failed:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
