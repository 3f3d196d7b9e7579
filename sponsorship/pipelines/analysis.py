"""Complete pipeline orchestration for one sponsorship document.

fetch → extract text → structured extraction → persist (with placement
matching) → terminal status. Every failure is categorized and written as the
job's ``error`` state, so a job always ends in a terminal state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ai.extraction import ExtractionClient
from ai.placements import PlacementMatcher
from sponsorship.errors import CategorizedError, InvalidStatusTransition, JobNotFound, PersistenceError, categorize_error
from sponsorship.models import JobStatus
from sponsorship.parsers import extract_text_from_url
from sponsorship.pipelines.persistence import PersistenceSummary, persist_result, update_job_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobDescriptor:
    """What a worker needs to run one analysis."""
    job_id: str
    source_url: str
    owner_id: str
    profile_id: str | None = None


@dataclass
class AnalysisOutcome:
    """Terminal result of one pipeline run."""
    job_id: str
    status: JobStatus
    summary: PersistenceSummary | None = None
    error: CategorizedError | None = None


async def run_analysis(
    job: JobDescriptor,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    extraction_client: ExtractionClient | None = None,
    matcher: PlacementMatcher | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AnalysisOutcome:
    """Run one job from ``analyzing`` to ``completed`` or ``error``.

    Steps:
    1. Download the document and extract its text (watchdog-bounded)
    2. Extract commercial terms with the extraction service
    3. Persist offer terms, packages and placement links
    4. Mark the job completed

    Never raises: failures are categorized and stored on the job.
    """
    extraction_client = extraction_client or ExtractionClient()
    logger.info(f"Starting analysis for job {job.job_id}", extra={"job_id": job.job_id})

    try:
        extracted = await extract_text_from_url(job.source_url, client=http_client)
        logger.info(
            f"Extracted {len(extracted.text)} characters from {extracted.page_count} pages",
            extra={"job_id": job.job_id, "original_length": extracted.original_length, "chunked": extracted.chunked},
        )

        result = await extraction_client.extract(extracted.text)
        logger.info(f"Extracted {len(result.packages)} sponsorship packages", extra={"job_id": job.job_id})

        async with session_factory() as session:
            summary = await persist_result(session, job.job_id, result, matcher)

        await update_job_status(session_factory, job.job_id, JobStatus.COMPLETED)
        logger.info(f"Analysis completed for job {job.job_id}", extra={"job_id": job.job_id})
        return AnalysisOutcome(job.job_id, JobStatus.COMPLETED, summary=summary)

    except Exception as e:
        logger.error(f"Analysis failed for job {job.job_id}: {e}", exc_info=True, extra={"job_id": job.job_id})
        categorized = categorize_error(e)
        try:
            await update_job_status(session_factory, job.job_id, JobStatus.ERROR, categorized)
        except (PersistenceError, InvalidStatusTransition, JobNotFound) as write_error:
            logger.critical(
                f"Could not record failure for job {job.job_id}: {write_error}",
                extra={"job_id": job.job_id, "error_category": categorized.category.value},
            )
        return AnalysisOutcome(job.job_id, JobStatus.ERROR, error=categorized)
