"""Tests for the in-process worker pool."""

import asyncio

import pytest

from sponsorship.pipelines.analysis import JobDescriptor
from sponsorship.pipelines.worker import WorkerPool


def _job(n: int) -> JobDescriptor:
    return JobDescriptor(f"job-{n}", f"https://files.example.com/{n}.pdf", "owner-1")


@pytest.mark.asyncio
async def test_every_job_runs_exactly_once():
    seen = []

    async def handler(job):
        await asyncio.sleep(0)
        seen.append(job.job_id)

    pool = WorkerPool(handler, concurrency=3)
    await pool.start()
    for n in range(10):
        await pool.submit(_job(n))
    await pool.stop(drain=True)

    assert sorted(seen) == sorted(f"job-{n}" for n in range(10))
    assert not pool.running


@pytest.mark.asyncio
async def test_worker_survives_handler_errors():
    seen = []

    async def handler(job):
        if job.job_id == "job-0":
            raise RuntimeError("boom")
        seen.append(job.job_id)

    pool = WorkerPool(handler, concurrency=1)
    await pool.start()
    for n in range(3):
        await pool.submit(_job(n))
    await pool.stop(drain=True)

    assert seen == ["job-1", "job-2"]


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    active = 0
    peak = 0

    async def handler(job):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1

    pool = WorkerPool(handler, concurrency=2)
    await pool.start()
    for n in range(6):
        await pool.submit(_job(n))
    await pool.stop(drain=True)

    assert peak == 2


@pytest.mark.asyncio
async def test_start_is_idempotent():
    async def handler(job):
        pass

    pool = WorkerPool(handler, concurrency=2)
    await pool.start()
    tasks = list(pool._tasks)
    await pool.start()

    assert pool._tasks == tasks
    await pool.stop()
