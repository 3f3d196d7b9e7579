"""List analysis jobs stuck in ``analyzing`` and optionally close them.

A job stays ``analyzing`` when its terminal status write failed after all
retries (logged at CRITICAL as "requires reconciliation"). Run this after
such an incident, or periodically, with ``--fail`` to mark those jobs as
``error`` so their clients stop polling.
"""

import argparse
import asyncio
import sys
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sponsorship.db import AsyncSessionMaker, engine
from sponsorship.errors import ExtractionTimeout, categorize_error
from sponsorship.models import JobStatus
from sponsorship.pipelines.persistence import find_stuck_jobs, update_job_status


async def reconcile(
    session_factory: async_sessionmaker[AsyncSession],
    older_than: timedelta,
    fail: bool = False,
) -> list[str]:
    """Return the ids of stuck jobs, moving them to ``error`` when ``fail`` is set."""
    async with session_factory() as session:
        stuck = await find_stuck_jobs(session, older_than)
        job_ids = [job.id for job in stuck]
        for job in stuck:
            print(f"  {job.id}  owner={job.owner_id}  analyzing since {job.updated_at:%Y-%m-%d %H:%M:%S}")

    if fail and job_ids:
        error = categorize_error(ExtractionTimeout(f"Job left analyzing for over {older_than}"))
        for job_id in job_ids:
            await update_job_status(session_factory, job_id, JobStatus.ERROR, error)
        print(f"✓ Marked {len(job_ids)} jobs as error ({error.category.value})")

    return job_ids


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--minutes", type=int, default=15, help="Age in minutes after which a job counts as stuck")
    parser.add_argument("--fail", action="store_true", help="Mark stuck jobs as error")
    args = parser.parse_args()
    try:
        job_ids = await reconcile(AsyncSessionMaker, timedelta(minutes=args.minutes), fail=args.fail)
        print(f"{len(job_ids)} stuck jobs older than {args.minutes} minutes")
    except Exception as e:
        print(f"\n❌ Error reconciling jobs: {e}")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
