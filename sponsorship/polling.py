"""Client-side polling of an analysis job until it finishes.

Polls every 2 s for the first 30 attempts and every 3 s after that, giving
up after 60 attempts.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import httpx

from .errors import JobNotFound
from .models import JobStatus
from .status import JobStatusView

logger = logging.getLogger(__name__)

StatusFetcher = Callable[[], Awaitable[JobStatusView]]


class PollingTimeout(TimeoutError):
    """Job did not reach a terminal state within the polling budget."""


async def poll_until_terminal(
    fetch_status: StatusFetcher,
    *,
    interval: float = 2.0,
    extended_interval: float = 3.0,
    extended_after: int = 30,
    max_attempts: int = 60,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> JobStatusView:
    """Call ``fetch_status`` until it reports ``completed`` or ``error``.

    Transport errors count as an attempt and polling continues.

    Raises:
        PollingTimeout: After ``max_attempts`` non-terminal reads
    """
    for attempt in range(max_attempts):
        try:
            view = await fetch_status()
        except httpx.TransportError as e:
            logger.warning(f"Error checking analysis status: {e}")
        else:
            if view.is_terminal:
                return view

        if attempt < max_attempts - 1:
            await sleep(interval if attempt < extended_after else extended_interval)

    raise PollingTimeout(f"Analysis did not finish after {max_attempts} status checks")


def http_status_fetcher(client: httpx.AsyncClient, job_id: str) -> StatusFetcher:
    """Status fetcher reading ``GET /analyses/{job_id}`` through ``client``."""

    async def fetch() -> JobStatusView:
        response = await client.get(f"/analyses/{job_id}")
        if response.status_code == 404:
            raise JobNotFound(job_id)
        response.raise_for_status()
        body = response.json()
        return JobStatusView(
            status=JobStatus(body["status"]),
            error_category=body.get("errorCategory"),
            user_message=body.get("userMessage"),
            suggested_action=body.get("suggestedAction"),
        )

    return fetch
