"""Recommendation generator: scoring result to hire/hold/reject guidance."""

from __future__ import annotations

from typing import Any

import structlog

from ..clients.base import TextModelClient
from ..errors import ParseError
from ..schemas import JobCriteria, RecommendationResult, ScoringResult
from ..schemas.evaluation import clamp
from .model_json import parse_model_json

AUTO_REJECT_CONFIDENCE = 95
DEFAULT_CONFIDENCE = 70
DEFAULT_NEXT_ACTION = "Review candidate profile"
REJECTION_ACTION = "Send rejection notification"

_VALID = ("hire", "hold", "reject")

RECOMMENDATION_PROMPT = """Based on this candidate evaluation, provide a hiring recommendation.

Candidate: {name}
Overall Score: {score}%
Job: {title}

Evaluation Summary:
{summary}

Strengths:
{strengths}

Weaknesses:
{weaknesses}

Red Flags:
{red_flags}

Why Section:
{why}

Decision guidelines:
- HIRE (score > 80%, no major red flags): strong candidate, proceed to next stage
- HOLD (score 60-80% or has concerns): needs more evaluation, has potential
- REJECT (score < 60% or critical red flags): not suitable for the role

Return ONLY JSON:
{{
  "recommendation": "hire|hold|reject",
  "confidence": <0-100, how confident you are in this recommendation>,
  "reason": "<1-2 short points>",
  "suggested_questions": ["<3-5 concise follow-up interview questions addressing gaps>"],
  "next_best_action": "<recommended next step>"
}}
"""


def normalize_recommendation(value: Any) -> str:
    text = str(value or "").strip().lower()
    return text if text in _VALID else "pending"


def _bullets(items: list[str], empty: str = "- None") -> str:
    return "\n".join(f"- {item}" for item in items) or empty


class RecommendationGenerator:
    """Turns a scoring result into a recommendation, auto-rejecting low scores."""

    def __init__(self, text_model: TextModelClient) -> None:
        self._text_model = text_model
        self._logger = structlog.get_logger(__name__)

    async def generate(
        self,
        scoring: ScoringResult,
        job: JobCriteria,
        candidate_name: str,
    ) -> RecommendationResult:
        score = scoring.overall_score
        threshold = job.auto_reject_threshold
        if score < threshold:
            self._logger.info("recommendation.auto_reject", score=score, threshold=threshold)
            return RecommendationResult(
                recommendation="reject",
                confidence=AUTO_REJECT_CONFIDENCE,
                reason=(
                    f"Score of {score}% is below the auto-reject threshold of "
                    f"{threshold:g}%"
                ),
                suggested_questions=[],
                next_best_action=REJECTION_ACTION,
            )

        prompt = RECOMMENDATION_PROMPT.format(
            name=candidate_name,
            score=score,
            title=job.title,
            summary=scoring.summary or "No summary available",
            strengths=_bullets(scoring.strengths),
            weaknesses=_bullets(scoring.weaknesses),
            red_flags=_bullets(scoring.red_flags, "- None identified"),
            why=scoring.why_section,
        )
        payload = parse_model_json(await self._text_model.generate(prompt))
        if not isinstance(payload, dict):
            raise ParseError("Recommendation response is not a JSON object")

        questions = payload.get("suggested_questions")
        if not isinstance(questions, list):
            questions = []
        confidence = payload.get("confidence") or DEFAULT_CONFIDENCE
        result = RecommendationResult(
            recommendation=normalize_recommendation(payload.get("recommendation")),
            confidence=clamp(confidence, 0, 100, DEFAULT_CONFIDENCE),
            reason=str(payload.get("reason") or ""),
            suggested_questions=[str(q) for q in questions if q][:5],
            next_best_action=str(payload.get("next_best_action") or DEFAULT_NEXT_ACTION),
        )
        self._logger.info(
            "recommendation.complete",
            recommendation=result.recommendation,
            confidence=result.confidence,
        )
        return result


__all__ = [
    "AUTO_REJECT_CONFIDENCE",
    "DEFAULT_CONFIDENCE",
    "DEFAULT_NEXT_ACTION",
    "REJECTION_ACTION",
    "RecommendationGenerator",
    "normalize_recommendation",
]
