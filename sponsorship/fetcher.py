"""Download of uploaded sponsorship documents."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from .config import settings
from .errors import DownloadFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedDocument:
    content: bytes
    size: int
    content_type: str | None = None


async def _download(client: httpx.AsyncClient, url: str, max_bytes: int) -> FetchedDocument:
    try:
        async with client.stream("GET", url) as response:
            if response.status_code < 200 or response.status_code >= 300:
                raise DownloadFailed(f"Failed to download PDF: {response.status_code} {response.reason_phrase}")

            declared = response.headers.get("content-length")
            if declared and declared.isdigit() and int(declared) > max_bytes:
                raise DownloadFailed(f"Document is {declared} bytes, limit is {max_bytes}")

            # Content-Length may be absent or wrong; the running total is authoritative
            body = bytearray()
            async for chunk in response.aiter_bytes():
                body += chunk
                if len(body) > max_bytes:
                    raise DownloadFailed(f"Download exceeded the {max_bytes} byte limit")
            content_type = response.headers.get("content-type")
    except httpx.TimeoutException as e:
        raise DownloadFailed(f"Download timed out: {url}") from e
    except httpx.HTTPError as e:
        raise DownloadFailed(f"Download failed: {e}") from e

    if not body:
        raise DownloadFailed("Downloaded file is empty")

    return FetchedDocument(content=bytes(body), size=len(body), content_type=content_type)


async def fetch_document(
    url: str,
    *,
    timeout: float | None = None,
    max_bytes: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> FetchedDocument:
    """Download ``url`` once, without retries.

    Args:
        url: Public URL of the document
        timeout: Request timeout in seconds (defaults to ``FETCH_TIMEOUT_SECONDS``)
        max_bytes: Payload size limit (defaults to ``FETCH_MAX_BYTES``)
        client: Optional shared client; a short-lived one is created otherwise

    Raises:
        DownloadFailed: On non-2xx status, timeout, transport error,
            empty body or oversized body
    """
    timeout = timeout or settings.fetch.timeout_seconds
    max_bytes = max_bytes or settings.fetch.max_bytes

    logger.info(f"Downloading document from {url}")
    if client is not None:
        document = await _download(client, url, max_bytes)
    else:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned:
            document = await _download(owned, url, max_bytes)

    logger.info(f"PDF downloaded, size: {document.size} bytes")
    return document
