"""Utilities for extracting markdown from PDF résumés."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

import pymupdf
import pymupdf4llm

# Page counters such as "3 / 12" or "Page 2 of 5" on a line of their own.
_PAGE_COUNTER = re.compile(r"^\s*(?:page\s+)?\d+\s*(?:/|of)\s*\d+\s*$", re.IGNORECASE)


def extract_markdown(
    source: str | Path | bytes,
    *,
    exclude_patterns: Sequence[str] | None = None,
) -> str:
    """Return markdown text extracted from a PDF, removing boilerplate lines.

    Parameters
    ----------
    source:
        Path to the PDF file, or the raw PDF bytes.
    exclude_patterns:
        Optional list of substrings (case-sensitive); any line containing one
        of them is dropped, along with a trailing page counter. Standalone
        page counters are always dropped.
    """

    if isinstance(source, (bytes, bytearray)):
        with pymupdf.open(stream=bytes(source), filetype="pdf") as document:
            markdown = pymupdf4llm.to_markdown(document)
    else:
        pdf_path = Path(source)
        if not pdf_path.exists():
            raise FileNotFoundError(pdf_path)
        markdown = pymupdf4llm.to_markdown(str(pdf_path))

    patterns = _build_patterns(exclude_patterns or ())

    cleaned_lines: list[str] = []
    for line in markdown.splitlines():
        if not line.strip():
            cleaned_lines.append(line)
            continue
        if _PAGE_COUNTER.match(line):
            continue
        if any(pattern.search(line) for pattern in patterns):
            continue
        cleaned_lines.append(line)
    return "\n".join(cleaned_lines).strip()


def _build_patterns(excludes: Iterable[str]) -> list[re.Pattern[str]]:
    patterns: list[re.Pattern[str]] = []
    for text in excludes:
        escaped = re.escape(text)
        # Allow optional whitespace and page counter suffix like " 1 / 63".
        pattern = re.compile(rf"{escaped}(?:\s+\d+\s*/\s*\d+)?")
        patterns.append(pattern)
    return patterns


__all__ = ["extract_markdown"]
