"""Evaluation pipeline assembly and execution."""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Awaitable, Callable, Iterable, Sequence

import pendulum
import structlog

from .core.external import (
    ExternalProfileExtractor,
    ExternalProfileResult,
    build_social_insights,
)
from .core.profile import ProfileParser, merge_profiles
from .core.recommendation import RecommendationGenerator
from .core.scoring import CandidateData, ScoringEngine, pre_evaluation_red_flags
from .core.transcription import TranscriptionOutcome, TranscriptionStage
from .errors import EvaluationError
from .progress import CallbackProgressReporter, NullProgressReporter, ProgressReporter
from .ratelimit import NoopRateLimiter, RateLimiter
from .schemas import (
    BatchEntry,
    BatchEvaluationResult,
    EvaluationInput,
    EvaluationOutcome,
    EvaluationProgress,
    EvaluationResult,
    TextAnswerAssessment,
    TextResponse,
    TextResponseAnalysis,
    TranscriptPair,
    UnifiedProfile,
    VoiceAnalysisDetail,
)
from .schemas.evaluation import AnswerQuality, StageType, round_half_up

InputLoader = Callable[
    [str, str], "EvaluationInput | None | Awaitable[EvaluationInput | None]"
]
ResultCallback = Callable[[str, EvaluationOutcome], "None | Awaitable[None]"]
BatchProgressCallback = Callable[[str, EvaluationProgress], None]
Sleep = Callable[[float], Awaitable[None]]

_QUALITY_SCORES: dict[AnswerQuality, int] = {"poor": 1, "average": 2, "good": 3, "excellent": 4}


class EvaluationPipeline:
    """End-to-end evaluation orchestrator for a single applicant."""

    def __init__(
        self,
        *,
        transcription: TranscriptionStage,
        profile_parser: ProfileParser,
        external_extractor: ExternalProfileExtractor,
        scoring_engine: ScoringEngine,
        recommender: RecommendationGenerator,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._transcription = transcription
        self._profile_parser = profile_parser
        self._external = external_extractor
        self._scoring = scoring_engine
        self._recommender = recommender
        self._rate_limiter = rate_limiter or NoopRateLimiter()
        self._logger = structlog.get_logger(__name__)

    async def evaluate(
        self,
        evaluation_input: EvaluationInput,
        progress: ProgressReporter | None = None,
    ) -> EvaluationOutcome:
        """Run every stage; fatal errors come back as a failed outcome."""

        reporter = progress or NullProgressReporter()
        started = time.perf_counter()
        log = self._logger.bind(
            applicant_id=evaluation_input.applicant_id, job_id=evaluation_input.job_id
        )

        def report(stage: StageType, percent: int, step: str, error: str | None = None) -> None:
            event = EvaluationProgress(stage=stage, progress=percent, current_step=step, error=error)
            try:
                reporter.report(event)
            except Exception as exc:  # noqa: BLE001
                log.warning("progress.report_failed", stage=stage, error=str(exc))

        def failed(message: str) -> EvaluationOutcome:
            report("failed", 0, "Evaluation failed", message)
            return EvaluationOutcome(
                success=False, error=message, processing_time_ms=_elapsed_ms(started)
            )

        try:
            result = await self._run(evaluation_input, report)
        except EvaluationError as exc:
            log.error(
                "pipeline.failed",
                error_code=exc.code,
                error=exc.message,
                details=exc.details,
                processing_time_ms=_elapsed_ms(started),
            )
            return failed(exc.message)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
            log.exception("pipeline.crashed", error=message)
            return failed(message)

        report("complete", 100, "Evaluation complete!")
        elapsed = _elapsed_ms(started)
        log.info(
            "pipeline.complete",
            overall_score=result.overall_score,
            recommendation=result.recommendation,
            processing_time_ms=elapsed,
        )
        return EvaluationOutcome(success=True, evaluation=result, processing_time_ms=elapsed)

    async def _run(
        self,
        evaluation_input: EvaluationInput,
        report: Callable[[StageType, int, str], None],
    ) -> EvaluationResult:
        personal = evaluation_input.personal_data

        report("transcribing", 10, "Transcribing voice responses...")
        outcomes: dict[str, TranscriptionOutcome] = {}
        if evaluation_input.voice_responses:
            outcomes = await self._transcription.transcribe_batch(evaluation_input.voice_responses)
        transcripts, voice_details = _collect_transcripts(evaluation_input, outcomes)
        transcribed = sum(1 for pair in transcripts if pair.raw_transcript)
        report("transcribing", 30, f"Transcribed {transcribed} voice responses")

        report("parsing_resume", 40, "Parsing resume and profiles...")
        resume = None
        if evaluation_input.cv_url:
            resume = await self._parse_resume(evaluation_input)
        report(
            "parsing_resume",
            45,
            "Resume parsed successfully" if resume else "Resume parsing complete",
        )

        report("parsing_resume", 48, "Extracting content from online profiles...")
        external = await self._external.extract(
            linkedin_url=personal.linkedin_url,
            portfolio_url=personal.portfolio_url,
            behance_url=personal.behance_url,
        )
        profile = None
        if evaluation_input.cv_url:
            profile = _build_profile(evaluation_input, resume, external)
        report(
            "parsing_resume",
            55,
            f"Extracted content from {len(external.successful)} online profile(s)"
            if external.success
            else "Profile extraction complete",
        )

        await self._rate_limiter.wait("scoring")
        report("scoring", 60, "Evaluating against job criteria...")
        candidate = CandidateData(
            personal_data=personal,
            profile=profile,
            voice_answers=voice_details,
            text_responses=list(evaluation_input.text_responses),
            additional_notes=evaluation_input.additional_notes,
            external_profiles=external,
        )
        scoring = await self._scoring.score(candidate, evaluation_input.job_criteria)
        pre_flags = pre_evaluation_red_flags(evaluation_input)
        if pre_flags:
            scoring.red_flags = pre_flags + scoring.red_flags
        report("scoring", 80, f"Scored {scoring.overall_score}%")

        await self._rate_limiter.wait("recommendation")
        report("generating_recommendation", 85, "Generating recommendation...")
        recommendation = await self._recommender.generate(
            scoring,
            evaluation_input.job_criteria,
            personal.name,
        )

        sentiment, confidence = _average_signals(voice_details)
        return EvaluationResult(
            applicant_id=evaluation_input.applicant_id,
            job_id=evaluation_input.job_id,
            overall_score=scoring.overall_score,
            criteria_matches=scoring.criteria_matches,
            strengths=scoring.strengths,
            weaknesses=scoring.weaknesses,
            red_flags=scoring.red_flags,
            summary=scoring.summary,
            why_section=scoring.why_section,
            recommendation=recommendation.recommendation,
            recommendation_confidence=recommendation.confidence,
            recommendation_reason=recommendation.reason,
            suggested_questions=recommendation.suggested_questions,
            next_best_action=recommendation.next_best_action,
            sentiment_score=sentiment,
            confidence_score=confidence,
            transcripts=transcripts,
            parsed_resume=profile,
            voice_analysis_details=voice_details,
            text_response_analysis=analyze_text_responses(evaluation_input.text_responses),
            social_profile_insights=build_social_insights(external),
            evaluated_at=pendulum.now("UTC").to_iso8601_string(),
        )

    async def _parse_resume(self, evaluation_input: EvaluationInput) -> UnifiedProfile | None:
        log = self._logger.bind(applicant_id=evaluation_input.applicant_id)
        try:
            outcome = await self._profile_parser.parse_resume(evaluation_input.cv_url or "")
        except EvaluationError as exc:
            log.warning("pipeline.resume_skipped", error_code=exc.code, error=exc.message)
            return None
        except Exception as exc:  # noqa: BLE001
            log.exception("pipeline.resume_crashed", error=str(exc))
            return None
        return outcome.profile


def _build_profile(
    evaluation_input: EvaluationInput,
    resume: UnifiedProfile | None,
    external: ExternalProfileResult,
) -> UnifiedProfile | None:
    sources = [resume, *external.profiles()]
    if not any(source is not None for source in sources):
        return None
    merged = merge_profiles(*sources)
    linkedin_url = evaluation_input.personal_data.linkedin_url
    if linkedin_url and not merged.links.linkedin:
        merged.links.linkedin = linkedin_url
    return merged


class BatchCoordinator:
    """Runs the pipeline for many applicants, isolating per-applicant failures."""

    def __init__(
        self,
        pipeline: EvaluationPipeline,
        *,
        delay_seconds: float = 0.5,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._pipeline = pipeline
        self._delay_seconds = delay_seconds
        self._sleep = sleep
        self._logger = structlog.get_logger(__name__)

    async def run(
        self,
        job_id: str,
        applicant_ids: Sequence[str],
        loader: InputLoader,
        *,
        on_progress: BatchProgressCallback | None = None,
        on_result: ResultCallback | None = None,
    ) -> BatchEvaluationResult:
        entries: list[BatchEntry] = []

        for index, applicant_id in enumerate(applicant_ids):
            if index > 0 and self._delay_seconds > 0:
                await self._sleep(self._delay_seconds)
            entry = await self._run_one(job_id, applicant_id, loader, on_progress, on_result)
            entries.append(entry)

        failed = sum(1 for entry in entries if not entry.success)
        self._logger.info(
            "batch.complete", job_id=job_id, total_processed=len(entries), total_failed=failed
        )
        return BatchEvaluationResult(
            success=failed == 0,
            results=entries,
            total_processed=len(entries),
            total_failed=failed,
        )

    async def _run_one(
        self,
        job_id: str,
        applicant_id: str,
        loader: InputLoader,
        on_progress: BatchProgressCallback | None,
        on_result: ResultCallback | None,
    ) -> BatchEntry:
        try:
            loaded = loader(applicant_id, job_id)
            evaluation_input = await loaded if inspect.isawaitable(loaded) else loaded
            if evaluation_input is None:
                self._logger.warning("batch.missing_input", applicant_id=applicant_id)
                return BatchEntry(
                    applicant_id=applicant_id, success=False, error="Candidate data not found"
                )

            reporter = None
            if on_progress is not None:
                callback = on_progress
                reporter = CallbackProgressReporter(lambda event: callback(applicant_id, event))
            outcome = await self._pipeline.evaluate(evaluation_input, reporter)

            if on_result is not None:
                persisted = on_result(applicant_id, outcome)
                if inspect.isawaitable(persisted):
                    await persisted
        except Exception as exc:  # noqa: BLE001
            message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
            self._logger.error("batch.applicant_failed", applicant_id=applicant_id, error=message)
            return BatchEntry(applicant_id=applicant_id, success=False, error=message)

        return BatchEntry(applicant_id=applicant_id, success=outcome.success, error=outcome.error)


def analyze_text_responses(responses: Iterable[TextResponse]) -> TextResponseAnalysis | None:
    """Grade written answers by length and summarize them."""

    assessments = [
        TextAnswerAssessment(
            question_id=response.question_id,
            question_text=response.question_text,
            answer=response.answer,
            word_count=len(response.answer.split()),
            quality=_answer_quality(len(response.answer.split())),
        )
        for response in responses
    ]
    if not assessments:
        return None

    mean_quality = sum(_QUALITY_SCORES[a.quality] for a in assessments) / len(assessments)
    if mean_quality < 1.5:
        overall: AnswerQuality = "poor"
    elif mean_quality < 2.5:
        overall = "average"
    elif mean_quality < 3.5:
        overall = "good"
    else:
        overall = "excellent"

    mean_words = sum(a.word_count for a in assessments) / len(assessments)
    return TextResponseAnalysis(
        total_responses=len(assessments),
        responses=assessments,
        overall_quality=overall,
        insights=[
            f"{len(assessments)} written responses provided",
            f"Average word count: {round_half_up(mean_words)}",
            f"Overall quality: {overall}",
        ],
    )


def _answer_quality(word_count: int) -> AnswerQuality:
    if word_count < 20:
        return "poor"
    if word_count < 50:
        return "average"
    if word_count < 100:
        return "good"
    return "excellent"


def _collect_transcripts(
    evaluation_input: EvaluationInput,
    outcomes: dict[str, TranscriptionOutcome],
) -> tuple[list[TranscriptPair], list[VoiceAnalysisDetail]]:
    transcripts: list[TranscriptPair] = []
    details: list[VoiceAnalysisDetail] = []
    for response in evaluation_input.voice_responses:
        outcome = outcomes.get(response.question_id)
        if outcome is None or not outcome.success:
            transcripts.append(TranscriptPair(question_id=response.question_id))
            continue
        transcripts.append(outcome.to_pair())
        details.append(outcome.to_detail())
    return transcripts, details


def _average_signals(
    details: Sequence[VoiceAnalysisDetail],
) -> tuple[float | None, float | None]:
    analyses = [detail.analysis for detail in details if detail.analysis is not None]
    if not analyses:
        return None, None
    sentiment = sum(a.sentiment.score for a in analyses) / len(analyses)
    confidence = sum(a.confidence.score for a in analyses) / len(analyses)
    return sentiment, confidence


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


__all__ = [
    "BatchCoordinator",
    "EvaluationPipeline",
    "InputLoader",
    "analyze_text_responses",
]
