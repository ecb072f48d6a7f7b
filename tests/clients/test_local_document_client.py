from __future__ import annotations

import pymupdf
import pytest

import hreval.clients.local as local
from hreval.errors import ServiceError


@pytest.mark.asyncio
async def test_pdf_client_extracts_markdown(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[bytes, list[str]]] = []

    def fake_extract(source: bytes, *, exclude_patterns: list[str]) -> str:
        calls.append((source, exclude_patterns))
        return "# Sara Ali"

    monkeypatch.setattr(local, "extract_markdown", fake_extract)
    client = local.PdfDocumentClient(exclude_patterns=["Confidential"])

    text = await client.extract_text(b"%PDF", "application/pdf", "ignored")

    assert text == "# Sara Ali"
    assert calls == [(b"%PDF", ["Confidential"])]


@pytest.mark.asyncio
async def test_pdf_client_rejects_images() -> None:
    with pytest.raises(ServiceError):
        await local.PdfDocumentClient().extract_text(b"\x89PNG", "image/png", "ignored")


@pytest.mark.asyncio
async def test_pdf_client_reports_corrupt_documents(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(source: bytes, *, exclude_patterns: list[str]) -> str:
        raise pymupdf.FileDataError("Failed to open stream")

    monkeypatch.setattr(local, "extract_markdown", broken)

    with pytest.raises(ServiceError, match="Could not read PDF document"):
        await local.PdfDocumentClient().extract_text(b"garbage", "application/pdf", "ignored")


@pytest.mark.asyncio
async def test_pdf_client_rejects_bytes_that_are_not_a_pdf() -> None:
    with pytest.raises(ServiceError):
        await local.PdfDocumentClient().extract_text(
            b"not a pdf at all", "application/pdf", "ignored"
        )
