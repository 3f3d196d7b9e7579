"""PDF text extraction for sponsorship documents.

pdfplumber is tried first (better text extraction), pypdf is the fallback
for files pdfplumber cannot open. Extracted text is cleaned, bounded to a
page limit and reduced to a character budget before it is sent to the
extraction service.
"""
from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO

import httpx
import pdfplumber
from pypdf import PdfReader

from .config import ExtractionSettings, settings
from .errors import ExtractionTimeout, NoExtractableText
from .fetcher import fetch_document
from .pipelines.normalization import clean_text

logger = logging.getLogger(__name__)

ELISION_MARKER = "\n\n[... content truncated for analysis ...]\n\n"


@dataclass
class ParsedDocument:
    """Raw per-page text of a document."""
    text: str
    page_count: int
    pages_processed: int
    pages: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def truncated(self) -> bool:
        return self.pages_processed < self.page_count

    @property
    def content_length(self) -> int:
        """Length of the cleaned page text, page markers excluded."""
        return len(clean_text(" ".join(self.pages)))


@dataclass
class ExtractedText:
    """Cleaned, budget-bounded text ready for the extraction service."""
    text: str
    page_count: int
    original_length: int
    chunked: bool = False


def is_pdf(content: bytes) -> bool:
    """Magic number check."""
    return content.lstrip()[:4] == b"%PDF"


def _render_pages(page_texts: list[str | None]) -> str:
    parts = []
    for number, page_text in enumerate(page_texts, start=1):
        parts.append(f"\n--- Page {number} ---\n{page_text or ''}\n")
    return "".join(parts)


def _pages_with_pdfplumber(file_obj: BinaryIO, max_pages: int) -> tuple[list[str | None], int]:
    with pdfplumber.open(file_obj) as pdf:
        page_count = len(pdf.pages)
        texts = [page.extract_text() for page in pdf.pages[:max_pages]]
    return texts, page_count


def _pages_with_pypdf(file_obj: BinaryIO, max_pages: int) -> tuple[list[str | None], int]:
    reader = PdfReader(file_obj)
    page_count = len(reader.pages)
    texts = [reader.pages[i].extract_text() for i in range(min(page_count, max_pages))]
    return texts, page_count


def extract_pages(content: bytes, max_pages: int | None = None) -> ParsedDocument:
    """Extract per-page text, reading at most ``max_pages`` pages.

    Raises:
        NoExtractableText: If the document cannot be parsed or has no pages
    """
    limit = max_pages or settings.extraction.max_pages
    file_obj = io.BytesIO(content)
    method = "pdfplumber"

    try:
        page_texts, page_count = _pages_with_pdfplumber(file_obj, limit)
    except Exception as e:
        logger.warning(f"pdfplumber extraction failed: {e}, trying pypdf")
        file_obj.seek(0)
        method = "pypdf"
        try:
            page_texts, page_count = _pages_with_pypdf(file_obj, limit)
        except Exception as e2:
            logger.error(f"pypdf extraction also failed: {e2}")
            raise NoExtractableText(f"Document could not be parsed: {e2}") from e2

    if page_count == 0:
        raise NoExtractableText("PDF has no pages")

    if page_count > limit:
        logger.warning(f"PDF has {page_count} pages, processing first {limit} only")

    logger.info(f"PDF loaded with {method}, {page_count} pages")
    return ParsedDocument(
        text=_render_pages(page_texts),
        page_count=page_count,
        pages_processed=len(page_texts),
        pages=[t or "" for t in page_texts],
        metadata={"method": method},
    )


def chunk_text(
    text: str,
    budget: int | None = None,
    *,
    head_ratio: float | None = None,
    tail_ratio: float | None = None,
) -> str:
    """Reduce over-budget text to its opening and closing parts.

    Keeps the first 60% and the last 20% of the text joined by
    ``ELISION_MARKER``: openings carry goals and impact, closings carry
    order forms and pricing. The result is never longer than the input plus
    the marker.
    """
    cfg = settings.extraction
    budget = budget or cfg.char_budget
    head_ratio = head_ratio if head_ratio is not None else cfg.head_ratio
    tail_ratio = tail_ratio if tail_ratio is not None else cfg.tail_ratio

    length = len(text)
    if length <= budget:
        return text

    head = text[: int(length * head_ratio)]
    tail = text[int(length * (1.0 - tail_ratio)):]
    chunked = head + ELISION_MARKER + tail
    logger.info(f"Large document detected ({length} chars), chunked to {len(chunked)} chars")
    return chunked


def extract_document_text(content: bytes, extraction: ExtractionSettings | None = None) -> ExtractedText:
    """Parse, clean, validate and chunk a document.

    Raises:
        NoExtractableText: If the cleaned text is shorter than the minimum
    """
    cfg = extraction or settings.extraction
    if not is_pdf(content):
        logger.warning("Payload does not start with a PDF header; attempting to parse anyway")

    parsed = extract_pages(content, max_pages=cfg.max_pages)
    cleaned = clean_text(parsed.text)
    logger.info(f"Text extraction completed, {parsed.content_length} characters of page text")

    if parsed.content_length < cfg.min_text_chars:
        raise NoExtractableText(
            "PDF appears to contain little to no text. Please ensure your PDF has "
            "extractable text content, not just images."
        )

    chunked = chunk_text(cleaned, cfg.char_budget, head_ratio=cfg.head_ratio, tail_ratio=cfg.tail_ratio)
    return ExtractedText(
        text=chunked,
        page_count=parsed.page_count,
        original_length=len(cleaned),
        chunked=chunked is not cleaned,
    )


async def extract_text_from_url(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    extraction: ExtractionSettings | None = None,
) -> ExtractedText:
    """Download a document and extract its text under one watchdog.

    Parsing runs in a worker thread so the watchdog can fire while a
    complex PDF is still being processed.

    Raises:
        DownloadFailed: If the download fails
        NoExtractableText: If the document has no usable text
        ExtractionTimeout: If download + parse exceeds the watchdog
    """
    cfg = extraction or settings.extraction

    async def _download_and_parse() -> ExtractedText:
        document = await fetch_document(url, client=client)
        return await asyncio.to_thread(extract_document_text, document.content, cfg)

    try:
        return await asyncio.wait_for(_download_and_parse(), timeout=cfg.watchdog_seconds)
    except asyncio.TimeoutError as e:
        raise ExtractionTimeout(
            f"PDF extraction timeout after {cfg.watchdog_seconds:g} seconds. "
            "The PDF may be too complex or large."
        ) from e
