"""Job submission and status reads."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sponsorship import models
from sponsorship.errors import JobAlreadySubmitted, JobNotFound
from sponsorship.models import JobStatus
from sponsorship.pipelines.analysis import JobDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitResult:
    accepted: bool
    job_id: str


@dataclass(frozen=True)
class JobStatusView:
    """Client-facing view of a job's status."""
    status: JobStatus
    error_category: str | None = None
    user_message: str | None = None
    suggested_action: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class StatusController:
    """Creates jobs, hands them to the worker queue and reports their status."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], queue: asyncio.Queue[JobDescriptor]):
        self.session_factory = session_factory
        self.queue = queue

    async def submit(
        self,
        job_id: str,
        source_url: str,
        owner_id: str,
        profile_id: str | None = None,
    ) -> SubmitResult:
        """Register a job, move it to ``analyzing`` and enqueue it.

        Returns as soon as the job is queued; the analysis runs in the
        worker pool.

        Raises:
            JobAlreadySubmitted: If the job exists and is no longer ``pending``
        """
        async with self.session_factory() as session:
            job = await session.get(models.AnalysisJob, job_id)
            if job is None:
                session.add(models.AnalysisJob(
                    id=job_id,
                    owner_id=owner_id,
                    source_document_url=source_url,
                    status=JobStatus.PENDING.value,
                ))
                session.add(models.SponsorshipOffer(
                    id=job_id,
                    user_id=owner_id,
                    team_profile_id=profile_id,
                    pdf_public_url=source_url,
                    source="pdf",
                    analysis_status=JobStatus.PENDING.value,
                ))
                try:
                    await session.flush()
                except IntegrityError as e:
                    await session.rollback()
                    raise JobAlreadySubmitted(job_id) from e

            # Compare-and-set so a job is claimed by exactly one submission
            claimed = await session.execute(
                update(models.AnalysisJob)
                .where(models.AnalysisJob.id == job_id)
                .where(models.AnalysisJob.status == JobStatus.PENDING.value)
                .values(status=JobStatus.ANALYZING.value, updated_at=models.utcnow())
            )
            if claimed.rowcount != 1:
                await session.rollback()
                raise JobAlreadySubmitted(job_id)

            await session.execute(
                update(models.SponsorshipOffer)
                .where(models.SponsorshipOffer.id == job_id)
                .values(analysis_status=JobStatus.ANALYZING.value)
            )
            await session.commit()

        await self.queue.put(JobDescriptor(job_id, source_url, owner_id, profile_id))
        logger.info(f"Job {job_id} accepted for analysis", extra={"job_id": job_id, "owner_id": owner_id})
        return SubmitResult(accepted=True, job_id=job_id)

    async def get_status(self, job_id: str) -> JobStatusView:
        """Current status of a job.

        Raises:
            JobNotFound: If no such job exists
        """
        async with self.session_factory() as session:
            job = await session.get(models.AnalysisJob, job_id)
            if job is None:
                raise JobNotFound(job_id)
            return JobStatusView(
                status=job.job_status,
                error_category=job.error_category,
                user_message=job.error_message,
                suggested_action=job.suggested_action,
            )
