"""In-process job queue and worker pool.

Submissions put a ``JobDescriptor`` on an ``asyncio.Queue``; N worker tasks
take descriptors off it and run each to a terminal state exactly once.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from sponsorship.config import settings
from sponsorship.pipelines.analysis import JobDescriptor

logger = logging.getLogger(__name__)

JobHandler = Callable[[JobDescriptor], Awaitable[Any]]


class WorkerPool:
    """Fixed-size pool of asyncio workers draining one queue."""

    def __init__(
        self,
        handler: JobHandler,
        *,
        concurrency: int | None = None,
        queue: asyncio.Queue[JobDescriptor] | None = None,
    ):
        self.handler = handler
        self.concurrency = concurrency or settings.worker.concurrency
        self.queue: asyncio.Queue[JobDescriptor] = (
            queue if queue is not None else asyncio.Queue(maxsize=settings.worker.queue_size)
        )
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    async def start(self) -> None:
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._work(n), name=f"analysis-worker-{n}")
            for n in range(self.concurrency)
        ]
        logger.info(f"Started {self.concurrency} analysis workers")

    async def submit(self, job: JobDescriptor) -> None:
        await self.queue.put(job)
        logger.info(f"Queued job {job.job_id} (queue size {self.queue.qsize()})")

    async def stop(self, drain: bool = True) -> None:
        """Stop the workers; with ``drain`` queued jobs are finished first."""
        if drain and self.running:
            await self.queue.join()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Analysis workers stopped")

    async def _work(self, n: int) -> None:
        while True:
            job = await self.queue.get()
            try:
                await self.handler(job)
            except Exception:
                # The handler records failures itself; this only keeps the worker alive
                logger.exception("worker %s: unhandled error for job %s", n, job.job_id)
            finally:
                self.queue.task_done()
