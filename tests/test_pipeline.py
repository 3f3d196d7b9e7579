"""End-to-end tests: submission → worker → fetch → extract → persist → status."""

import asyncio
import json
from functools import partial

import httpx
import pytest
from sqlalchemy import select

from ai.extraction import ExtractionClient
from sponsorship import models
from sponsorship.errors import ErrorCategory, ExtractionAPIError
from sponsorship.models import JobStatus
from sponsorship.pipelines.analysis import run_analysis
from sponsorship.pipelines.worker import WorkerPool
from sponsorship.status import StatusController

DOC_URL = "https://files.example.com/riverside-2025.pdf"
LLM_URL = "https://llm.example.com/v1/chat/completions"

GOLD_DECK = [
    "Riverside Youth Baseball - 2025 Season Sponsorship",
    "Your support funds equipment, uniforms and field improvements for our players.",
    "Gold Sponsor - $500: logo on jersey, fence banner",
]


@pytest.fixture
def llm_client(gold_sponsor_payload):
    """Extraction client talking to a fake chat-completions endpoint."""
    prompts = []

    def handler(request: httpx.Request) -> httpx.Response:
        prompts.append(json.loads(request.content)["messages"][1]["content"])
        return httpx.Response(200, json={
            "choices": [{"message": {"content": json.dumps(gold_sponsor_payload)}, "finish_reason": "stop"}],
        })

    client = ExtractionClient(
        api_key="test-key",
        base_url=LLM_URL,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    client.prompts = prompts
    return client


async def _submit(session_factory, job_id="job-1"):
    queue = asyncio.Queue()
    controller = StatusController(session_factory, queue)
    await controller.submit(job_id, DOC_URL, "owner-1")
    return controller, queue.get_nowait()


@pytest.mark.asyncio
async def test_gold_sponsor_end_to_end(session_factory, make_pdf, pdf_transport, llm_client):
    controller, descriptor = await _submit(session_factory)

    async with httpx.AsyncClient(transport=pdf_transport(make_pdf([GOLD_DECK]))) as http_client:
        outcome = await run_analysis(
            descriptor,
            session_factory,
            extraction_client=llm_client,
            http_client=http_client,
        )

    assert outcome.status is JobStatus.COMPLETED
    assert "Gold Sponsor - $500: logo on jersey, fence banner" in llm_client.prompts[0]

    view = await controller.get_status("job-1")
    assert view.status is JobStatus.COMPLETED

    async with session_factory() as session:
        packages = list(await session.scalars(
            select(models.SponsorshipPackage).where(models.SponsorshipPackage.sponsorship_offer_id == "job-1")
        ))
        [package] = packages
        links = list(await session.scalars(
            select(models.PackagePlacement).where(models.PackagePlacement.package_id == package.id)
        ))

    assert package.name == "Gold Sponsor"
    assert package.price == 500
    assert package.benefits == ["logo on jersey", "fence banner"]
    assert package.display_benefits == ["Jersey Front Logo", "Fence Banner (Standard)"]
    by_text = {link.raw_text: link for link in links}
    assert by_text["logo on jersey"].placement_option_id == 22
    assert by_text["fence banner"].placement_option_id == 15
    assert all(link.confidence in ("high", "medium") for link in links)


@pytest.mark.asyncio
async def test_short_document_fails_with_no_text(session_factory, make_pdf, pdf_transport, fake_extraction_client):
    controller, descriptor = await _submit(session_factory)
    extraction = fake_extraction_client()

    # 40 characters of text
    pdf = make_pdf([["Gold Sponsor - $500: jersey and banner."]])
    async with httpx.AsyncClient(transport=pdf_transport(pdf)) as http_client:
        outcome = await run_analysis(descriptor, session_factory, extraction_client=extraction, http_client=http_client)

    assert outcome.status is JobStatus.ERROR
    assert outcome.error.category is ErrorCategory.NO_TEXT
    assert extraction.texts == []

    view = await controller.get_status("job-1")
    assert view.status is JobStatus.ERROR
    assert view.error_category == "no_text"
    assert view.user_message == "PDF appears to contain no readable text"
    assert "OCR" in view.suggested_action


@pytest.mark.asyncio
async def test_download_failure(session_factory, pdf_transport, fake_extraction_client):
    controller, descriptor = await _submit(session_factory)

    async with httpx.AsyncClient(transport=pdf_transport(b"not found", 404)) as http_client:
        await run_analysis(descriptor, session_factory, extraction_client=fake_extraction_client(), http_client=http_client)

    view = await controller.get_status("job-1")
    assert view.error_category == "download"


@pytest.mark.asyncio
async def test_service_failure_is_categorized(session_factory, make_pdf, pdf_transport, fake_extraction_client):
    controller, descriptor = await _submit(session_factory)
    extraction = fake_extraction_client(error=ExtractionAPIError("502 from upstream"))

    async with httpx.AsyncClient(transport=pdf_transport(make_pdf([GOLD_DECK]))) as http_client:
        await run_analysis(descriptor, session_factory, extraction_client=extraction, http_client=http_client)

    view = await controller.get_status("job-1")
    assert view.error_category == "api_error"
    assert view.user_message == "AI analysis service is temporarily unavailable"


@pytest.mark.asyncio
async def test_unexpected_error_is_truncated(session_factory, make_pdf, pdf_transport, fake_extraction_client):
    controller, descriptor = await _submit(session_factory)
    extraction = fake_extraction_client(error=RuntimeError("x" * 150))

    async with httpx.AsyncClient(transport=pdf_transport(make_pdf([GOLD_DECK]))) as http_client:
        await run_analysis(descriptor, session_factory, extraction_client=extraction, http_client=http_client)

    view = await controller.get_status("job-1")
    assert view.error_category == "unknown"
    assert view.user_message == "x" * 100 + "..."


@pytest.mark.asyncio
async def test_worker_pool_runs_submitted_job(session_factory, make_pdf, pdf_transport, llm_client):
    async with httpx.AsyncClient(transport=pdf_transport(make_pdf([GOLD_DECK]))) as http_client:
        handler = partial(
            run_analysis,
            session_factory=session_factory,
            extraction_client=llm_client,
            http_client=http_client,
        )
        # sqlite allows one writer at a time
        pool = WorkerPool(handler, concurrency=1)
        controller = StatusController(session_factory, pool.queue)
        await controller.submit("job-1", DOC_URL, "owner-1")
        await controller.submit("job-2", DOC_URL, "owner-1")

        await pool.start()
        await pool.stop(drain=True)

    for job_id in ("job-1", "job-2"):
        view = await controller.get_status(job_id)
        assert view.status is JobStatus.COMPLETED
