"""Tests for document download and text extraction."""

import asyncio

import httpx
import pytest

from sponsorship import parsers
from sponsorship.config import ExtractionSettings
from sponsorship.errors import DownloadFailed, ExtractionTimeout, NoExtractableText
from sponsorship.fetcher import fetch_document
from sponsorship.parsers import (
    ELISION_MARKER,
    chunk_text,
    extract_document_text,
    extract_pages,
    extract_text_from_url,
)
from sponsorship.pipelines.normalization import clean_text

DECK_LINES = [
    "Riverside Youth Baseball - 2025 Sponsorship Opportunities",
    "Our goal this season is to raise funds for new uniforms and field lights.",
    "Gold Sponsor - $500: logo on jersey, fence banner",
    "Silver Sponsor - $250: website logo & link, social media shoutout",
]


class TestChunking:

    def test_short_text_unchanged(self):
        text = "a" * 8000
        assert chunk_text(text, 8000) is text

    def test_long_text_keeps_head_and_tail(self):
        text = "".join(str(i % 10) for i in range(10_000))
        chunked = chunk_text(text, 8000)

        assert chunked.startswith(text[:6000])
        assert chunked.endswith(text[8000:])
        assert ELISION_MARKER in chunked
        assert len(chunked) == 6000 + len(ELISION_MARKER) + 2000

    @pytest.mark.parametrize("length", [8001, 9000, 20_000, 123_457])
    def test_chunk_bound(self, length):
        text = "x" * length
        assert len(chunk_text(text, 8000)) <= length + len(ELISION_MARKER)


class TestExtractPages:

    def test_page_markers(self, make_pdf):
        content = make_pdf([["First page text"], ["Second page text"]])
        parsed = extract_pages(content)

        assert parsed.page_count == 2
        assert parsed.pages_processed == 2
        assert not parsed.truncated
        assert "--- Page 1 ---" in parsed.text
        assert "--- Page 2 ---" in parsed.text
        assert "Second page text" in parsed.text

    def test_page_cap(self, make_pdf):
        content = make_pdf([[f"Page number {n}"] for n in range(1, 6)])
        parsed = extract_pages(content, max_pages=3)

        assert parsed.page_count == 5
        assert parsed.pages_processed == 3
        assert parsed.truncated
        assert "--- Page 4 ---" not in parsed.text

    def test_garbage_is_no_text(self):
        with pytest.raises(NoExtractableText):
            extract_pages(b"this is not a pdf at all")


class TestExtractDocumentText:

    def test_extracts_clean_text(self, make_pdf):
        extracted = extract_document_text(make_pdf([DECK_LINES]))

        assert "Gold Sponsor" in extracted.text
        assert "\n" not in extracted.text
        assert extracted.page_count == 1
        assert not extracted.chunked

    def test_short_document_is_no_text(self, make_pdf):
        # 40 characters of page text
        with pytest.raises(NoExtractableText):
            extract_document_text(make_pdf([["Gold Sponsor 500 logo on jersey fence."]]))

    def test_image_only_pages_are_no_text(self, make_pdf):
        # ten pages of markers alone exceed the minimum; page text does not
        content = make_pdf([[] for _ in range(10)])
        assert extract_pages(content).content_length == 0

        with pytest.raises(NoExtractableText):
            extract_document_text(content)

    def test_minimum_ignores_page_markers(self, make_pdf):
        pages = [["Gold Sponsor"]] * 7
        parsed = extract_pages(make_pdf(pages))

        assert len(clean_text(parsed.text)) >= 100
        assert parsed.content_length < 100
        with pytest.raises(NoExtractableText):
            extract_document_text(make_pdf(pages))

    def test_long_document_is_chunked(self, make_pdf):
        lines = [f"Line {n}: banner, jersey, newsletter and social media benefits" for n in range(40)]
        settings = ExtractionSettings(char_budget=1000)
        extracted = extract_document_text(make_pdf([lines, lines]), settings)

        assert extracted.chunked
        assert extracted.original_length > 1000
        assert ELISION_MARKER in extracted.text


class TestFetchDocument:

    @pytest.mark.asyncio
    async def test_success(self, pdf_transport):
        async with httpx.AsyncClient(transport=pdf_transport(b"%PDF-1.4 body")) as client:
            document = await fetch_document("https://files.example.com/deck.pdf", client=client)

        assert document.content == b"%PDF-1.4 body"
        assert document.size == len(b"%PDF-1.4 body")
        assert document.content_type == "application/pdf"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [403, 404, 500])
    async def test_error_status(self, pdf_transport, status_code):
        async with httpx.AsyncClient(transport=pdf_transport(b"nope", status_code)) as client:
            with pytest.raises(DownloadFailed):
                await fetch_document("https://files.example.com/deck.pdf", client=client)

    @pytest.mark.asyncio
    async def test_empty_body(self, pdf_transport):
        async with httpx.AsyncClient(transport=pdf_transport(b"")) as client:
            with pytest.raises(DownloadFailed):
                await fetch_document("https://files.example.com/deck.pdf", client=client)

    @pytest.mark.asyncio
    async def test_oversized_body(self, pdf_transport):
        async with httpx.AsyncClient(transport=pdf_transport(b"x" * 4096)) as client:
            with pytest.raises(DownloadFailed):
                await fetch_document("https://files.example.com/deck.pdf", client=client, max_bytes=1024)

    @pytest.mark.asyncio
    async def test_undeclared_oversized_body_stops_reading(self):
        produced = []

        async def body():
            for n in range(10):
                produced.append(n)
                yield b"x" * 512

        def handler(request: httpx.Request) -> httpx.Response:
            # chunked, no Content-Length
            return httpx.Response(200, content=body())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(DownloadFailed, match="byte limit"):
                await fetch_document("https://files.example.com/deck.pdf", client=client, max_bytes=1024)

        assert len(produced) < 10

    @pytest.mark.asyncio
    async def test_declared_oversized_body_is_rejected_before_reading(self):
        produced = []

        async def body():
            produced.append(1)
            yield b"%PDF-1.4"

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-length": "50000000"}, content=body())

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(DownloadFailed, match="limit is 1024"):
                await fetch_document("https://files.example.com/deck.pdf", client=client, max_bytes=1024)

        assert produced == []

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(DownloadFailed):
                await fetch_document("https://files.example.com/deck.pdf", client=client)


class TestExtractTextFromUrl:

    @pytest.mark.asyncio
    async def test_download_and_extract(self, pdf_transport, make_pdf):
        async with httpx.AsyncClient(transport=pdf_transport(make_pdf([DECK_LINES]))) as client:
            extracted = await extract_text_from_url("https://files.example.com/deck.pdf", client=client)

        assert "Silver Sponsor" in extracted.text

    @pytest.mark.asyncio
    async def test_watchdog(self, pdf_transport, make_pdf, monkeypatch):
        def slow_extract(content, cfg):
            import time
            time.sleep(0.5)

        monkeypatch.setattr(parsers, "extract_document_text", slow_extract)
        settings = ExtractionSettings(watchdog_seconds=0.05)

        async with httpx.AsyncClient(transport=pdf_transport(make_pdf([DECK_LINES]))) as client:
            with pytest.raises(ExtractionTimeout):
                await extract_text_from_url("https://files.example.com/deck.pdf", client=client, extraction=settings)

        # let the parse thread finish before the loop closes
        await asyncio.sleep(0.5)
