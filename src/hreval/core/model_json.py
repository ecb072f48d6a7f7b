"""Parsing of JSON returned by text models."""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar, overload

from pydantic import BaseModel, ValidationError

from ..errors import ParseError

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or the text itself."""

    match = _FENCE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _extract_json_fragment(text: str) -> str | None:
    starts = [index for index in (text.find("{"), text.find("[")) if index != -1]
    if not starts:
        return None
    start = min(starts)
    closing = "}" if text[start] == "{" else "]"
    end = text.rfind(closing)
    if end <= start:
        return None
    return text[start : end + 1]


@overload
def parse_model_json(
    text: str, schema: None = None, *, error_cls: type[ParseError] = ParseError
) -> Any: ...


@overload
def parse_model_json(
    text: str, schema: type[ModelT], *, error_cls: type[ParseError] = ParseError
) -> ModelT: ...


def parse_model_json(
    text: str,
    schema: type[BaseModel] | None = None,
    *,
    error_cls: type[ParseError] = ParseError,
) -> Any:
    """Decode model output that may be wrapped in code fences or prose.

    When ``schema`` is given the payload is validated into it. Every failure
    is raised as ``error_cls`` with the offending text in ``details``.
    """

    raw = text or ""
    body = strip_code_fences(raw)
    fragment = _extract_json_fragment(body)
    if fragment is None:
        raise error_cls("Model response did not contain JSON", details={"response": raw[:500]})

    try:
        payload = json.loads(fragment)
    except json.JSONDecodeError as exc:
        raise error_cls(
            f"Model response is not valid JSON: {exc.msg}",
            details={"response": raw[:500]},
        ) from exc

    if schema is None:
        return payload
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise error_cls(
            f"Model response does not match {schema.__name__}",
            details={"errors": exc.errors(include_url=False), "response": raw[:500]},
        ) from exc


__all__ = ["parse_model_json", "strip_code_fences"]
