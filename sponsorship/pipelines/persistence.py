"""Persistence of analysis results and job status.

Writes the extracted offer terms, one row per package, and the links from
packages to canonical placement options. Status writes go through
``update_job_status``, which enforces the job state machine and retries
transient database failures.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Awaitable, Callable, Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_incrementing

from ai.placements import MatchResult, PlacementMatcher, PlacementTaxonomy
from sponsorship import models
from sponsorship.config import settings
from sponsorship.errors import CategorizedError, InvalidStatusTransition, JobNotFound, PersistenceError
from sponsorship.models import JobStatus
from sponsorship.pipelines.normalization import ExtractedPackage, ExtractedResult

logger = logging.getLogger(__name__)


@dataclass
class PersistenceSummary:
    """What ``persist_result`` wrote."""
    packages_written: int = 0
    packages_failed: int = 0
    links_written: int = 0
    match_stats: dict[str, int] = field(default_factory=dict)


def derive_funding_goal(result: ExtractedResult) -> float:
    """Explicit goal, else twice the sum of known package costs (0 if none)."""
    if result.funding_goal is not None:
        return result.funding_goal
    return 2 * sum(result.costs())


def derive_offer_title(result: ExtractedResult, funding_goal: float | None) -> str:
    if funding_goal:
        return f"Sponsorship Offer - ${funding_goal:,.0f} Goal"
    if result.term:
        return f"Sponsorship Offer - {result.term}"
    count = len(result.packages)
    return f"Sponsorship Offer - {count} Package{'s' if count != 1 else ''}"


def _package_description(package: ExtractedPackage) -> str:
    return f"Package includes: {', '.join(package.raw_placements) or 'various benefits'}"


def _display_benefits(matches: Iterable[MatchResult]) -> list[str]:
    seen: set[str] = set()
    display = []
    for match in matches:
        text = match.display_text
        if text not in seen:
            seen.add(text)
            display.append(text)
    return display


async def _update_offer(session: AsyncSession, job_id: str, result: ExtractedResult) -> models.SponsorshipOffer:
    try:
        offer = await session.get(models.SponsorshipOffer, job_id)
        if offer is None:
            raise PersistenceError(f"Sponsorship offer {job_id} does not exist")

        funding_goal = derive_funding_goal(result)
        if result.funding_goal is None:
            logger.info(f"No explicit funding goal, using derived goal {funding_goal:g}")

        offer.duration = result.term
        offer.impact = result.impact
        offer.fundraising_goal = funding_goal
        offer.supported_players = result.total_supported
        offer.title = derive_offer_title(result, funding_goal)
        await session.flush()
        return offer
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to update sponsorship offer: {e}") from e


async def _write_package(
    session: AsyncSession,
    offer_id: str,
    order: int,
    package: ExtractedPackage,
    matcher: PlacementMatcher,
    summary: PersistenceSummary,
    totals: dict[str, int],
) -> None:
    batch = matcher.match_batch(package.raw_placements)

    row = models.SponsorshipPackage(
        sponsorship_offer_id=offer_id,
        name=package.name,
        price=package.cost,
        description=_package_description(package),
        benefits=list(package.raw_placements),
        display_benefits=_display_benefits(batch.matches),
        package_order=order,
    )
    session.add(row)
    await session.flush()

    linked: set[int] = set()
    for match in batch.matches:
        if match.entry is None:
            logger.info(f"No matching placement option found for: {match.raw_text}")
            continue
        if match.entry.id in linked:
            continue
        linked.add(match.entry.id)
        session.add(models.PackagePlacement(
            package_id=row.id,
            placement_option_id=match.entry.id,
            raw_text=match.raw_text[:255],
            confidence=match.confidence.value,
            match_method=match.method.value,
            score=match.score,
            taxonomy_version=matcher.taxonomy.version,
        ))
    await session.flush()

    summary.links_written += len(linked)
    for key, value in batch.stats.as_dict().items():
        totals[key] = totals.get(key, 0) + value
    logger.info(
        f"Created package: {package.name}",
        extra={"package_id": row.id, "links": len(linked), **batch.stats.as_dict()},
    )


async def persist_result(
    session: AsyncSession,
    job_id: str,
    result: ExtractedResult,
    matcher: PlacementMatcher | None = None,
) -> PersistenceSummary:
    """Store an extraction result for a job in one pass.

    Steps:
    1. Update the offer row (term, impact, goal, players, title)
    2. Insert one package row per package, ordered 1..n
    3. Link each package to the placement options its phrases match

    Each package is written in its own savepoint; a failing package is
    logged and skipped. The step is one-shot: the job must be ``analyzing``
    and an offer that already has packages is left untouched.

    Raises:
        JobNotFound: If the job does not exist
        InvalidStatusTransition: If the job is not ``analyzing``
        PersistenceError: If the offer row cannot be updated
    """
    matcher = matcher or PlacementMatcher()
    summary = PersistenceSummary()

    job = await session.get(models.AnalysisJob, job_id)
    if job is None:
        raise JobNotFound(job_id)
    if job.job_status is not JobStatus.ANALYZING:
        raise InvalidStatusTransition(f"Job {job_id} is {job.status}, expected analyzing")

    existing = await session.scalar(
        select(func.count()).select_from(models.SponsorshipPackage)
        .where(models.SponsorshipPackage.sponsorship_offer_id == job_id)
    )
    if existing:
        logger.warning(f"Offer {job_id} already has {existing} packages, skipping package creation")
        return summary

    offer = await _update_offer(session, job_id, result)

    totals: dict[str, int] = {}
    for order, package in enumerate(result.packages, start=1):
        try:
            async with session.begin_nested():
                await _write_package(session, offer.id, order, package, matcher, summary, totals)
            summary.packages_written += 1
        except SQLAlchemyError as e:
            summary.packages_failed += 1
            logger.error(f"Failed to create package {package.name}: {e}", exc_info=True)

    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError(f"Failed to commit analysis results: {e}") from e

    summary.match_stats = totals
    logger.info(
        f"Persisted {summary.packages_written} packages for job {job_id}",
        extra={"packages_failed": summary.packages_failed, "links_written": summary.links_written, **totals},
    )
    return summary


async def _write_status(
    session_factory: async_sessionmaker[AsyncSession],
    job_id: str,
    status: JobStatus,
    error: CategorizedError | None,
) -> None:
    async with session_factory() as session:
        job = await session.get(models.AnalysisJob, job_id)
        if job is None:
            raise JobNotFound(job_id)

        current = job.job_status
        if current is status:
            # Already applied by an earlier attempt
            return
        if not current.can_transition_to(status):
            raise InvalidStatusTransition(f"Job {job_id}: {current.value} → {status.value} is not allowed")

        job.status = status.value
        if error is not None:
            job.error_category = error.category.value
            job.error_message = error.message
            job.suggested_action = error.suggested_action

        offer = await session.get(models.SponsorshipOffer, job_id)
        if offer is not None:
            offer.analysis_status = status.value
        await session.commit()


async def update_job_status(
    session_factory: async_sessionmaker[AsyncSession],
    job_id: str,
    status: JobStatus,
    error: CategorizedError | None = None,
    *,
    attempts: int | None = None,
    backoff: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> None:
    """Write a job status transition, retrying transient database errors.

    Waits 1 s then 2 s between attempts (``WORKER_STATUS_WRITE_BACKOFF_SECONDS``).
    Invalid transitions are not retried.

    Raises:
        InvalidStatusTransition: If the transition is not allowed
        JobNotFound: If the job does not exist
        PersistenceError: If every attempt failed
    """
    attempts = attempts or settings.worker.status_write_attempts
    backoff = settings.worker.status_write_backoff_seconds if backoff is None else backoff

    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=backoff, increment=backoff),
        retry=retry_if_exception_type(SQLAlchemyError),
        sleep=sleep,
    )
    try:
        await retrying(_write_status, session_factory, job_id, status, error)
    except RetryError as e:
        logger.critical(
            f"Failed to set job {job_id} to {status.value} after {attempts} attempts, requires reconciliation",
            extra={"job_id": job_id, "status": status.value},
        )
        raise PersistenceError(f"Status write failed for job {job_id}") from e.last_attempt.exception()

    logger.info(f"Job {job_id} status: {status.value}")


async def find_stuck_jobs(session: AsyncSession, older_than: timedelta) -> list[models.AnalysisJob]:
    """Jobs left in ``analyzing`` longer than ``older_than``."""
    cutoff = models.utcnow() - older_than
    rows = await session.scalars(
        select(models.AnalysisJob)
        .where(models.AnalysisJob.status == JobStatus.ANALYZING.value)
        .where(models.AnalysisJob.updated_at < cutoff)
        .order_by(models.AnalysisJob.updated_at)
    )
    return list(rows)


async def sync_placement_options(session: AsyncSession, taxonomy: PlacementTaxonomy) -> int:
    """Insert or update one ``placement_options`` row per taxonomy entry."""
    written = 0
    for entry in taxonomy.entries:
        option = await session.get(models.PlacementOption, entry.id)
        if option is None:
            session.add(models.PlacementOption(
                id=entry.id,
                name=entry.canonical_name,
                category=entry.category,
                is_popular=entry.is_popular,
            ))
            written += 1
        elif (option.name, option.category, option.is_popular) != (
            entry.canonical_name, entry.category, entry.is_popular
        ):
            option.name = entry.canonical_name
            option.category = entry.category
            option.is_popular = entry.is_popular
            written += 1
    await session.commit()
    logger.info(f"Placement options synced ({written} written, taxonomy {taxonomy.version})")
    return written
