"""Offline document extraction backed by pymupdf4llm."""

from __future__ import annotations

import asyncio
from typing import Sequence

import structlog

from ..errors import ServiceError
from ..pdf_utils import extract_markdown


class PdfDocumentClient:
    """DocumentModelClient that reads PDFs locally instead of calling a model.

    The ``instructions`` argument is accepted for interface compatibility and
    ignored: extraction always returns the whole document as markdown.
    """

    def __init__(self, *, exclude_patterns: Sequence[str] | None = None) -> None:
        self._exclude_patterns = list(exclude_patterns or [])
        self._logger = structlog.get_logger(__name__)

    async def extract_text(self, document: bytes, mime_type: str, instructions: str) -> str:
        if mime_type != "application/pdf":
            raise ServiceError(f"Local extraction supports PDF only, got {mime_type!r}")
        try:
            text = await asyncio.to_thread(
                extract_markdown, document, exclude_patterns=self._exclude_patterns
            )
        # pymupdf reports corrupt or empty streams as FileDataError, a RuntimeError.
        except (RuntimeError, ValueError) as exc:
            self._logger.warning("pdf.extract_failed", error=str(exc))
            raise ServiceError(f"Could not read PDF document: {exc}") from exc
        self._logger.debug("pdf.extracted", characters=len(text))
        return text
