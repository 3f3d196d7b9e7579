"""Structured extraction of sponsorship terms from document text.

Calls an OpenAI-compatible chat-completions endpoint with the extraction
task and normalizes the JSON it answers with.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)

from ai.prompts import SYSTEM_TASK_SPEC, build_messages
from sponsorship.config import settings
from sponsorship.errors import (
    ExtractionAPIError,
    ExtractionTimeout,
    MalformedResponse,
    RateLimited,
)
from sponsorship.pipelines.normalization import ExtractedResult, normalize_extraction

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the service sometimes wraps JSON in."""
    return _CODE_FENCE.sub("", text).strip()


def parse_response_json(text: str) -> dict[str, Any]:
    """Parse the message content into a JSON object.

    Raises:
        MalformedResponse: If the content is not a JSON object
    """
    try:
        data = json.loads(strip_code_fences(text))
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Failed to parse extraction response: {text[:500]!r}")
        raise MalformedResponse(f"Failed to parse AI response: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _is_rate_limited(exc: BaseException | None) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429


def wait_for_failure(retry_state: RetryCallState) -> float:
    """Exponential wait (2 s, 4 s, ...) after a 429, flat 1 s otherwise."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if _is_rate_limited(exc):
        return float(2 ** retry_state.attempt_number)
    return 1.0


class ExtractionClient:
    """Client for the structured-extraction service."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        *,
        max_completion_tokens: int | None = None,
        system_task_spec: str = SYSTEM_TASK_SPEC,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        cfg = settings.llm
        self.api_key = api_key if api_key is not None else cfg.api_key
        self.model = model or cfg.model
        self.base_url = base_url or cfg.base_url
        self.timeout = timeout or cfg.timeout_seconds
        self.max_attempts = max_attempts or cfg.max_attempts
        self.max_completion_tokens = max_completion_tokens or cfg.max_completion_tokens
        self.system_task_spec = system_task_spec
        self._client = client
        self._sleep = sleep

    async def extract(self, document_text: str) -> ExtractedResult:
        """Extract and normalize the commercial terms of one document.

        Raises:
            RateLimited: If every attempt was answered with 429
            ExtractionTimeout: If the last attempt timed out
            ExtractionAPIError: On any other service failure
            MalformedResponse: If the answer is not a JSON object
            NoPackagesExtracted: If no package survives normalization
        """
        payload = {
            "model": self.model,
            "messages": build_messages(document_text, self.system_task_spec),
            "max_completion_tokens": self.max_completion_tokens,
        }
        logger.info(
            "Calling extraction service",
            extra={"model": self.model, "text_length": len(document_text)},
        )
        response = await self._call_with_retries(payload)
        content = self._message_content(response)
        return normalize_extraction(parse_response_json(content))

    async def _call_with_retries(self, payload: dict[str, Any]) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_for_failure,
            retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.TransportError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )
        try:
            return await retrying(self._post, payload)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimited(f"Extraction service rate limited after {self.max_attempts} attempts") from e
            raise ExtractionAPIError(
                f"Extraction service error: {e.response.reason_phrase} ({status})"
            ) from e
        except httpx.TimeoutException as e:
            raise ExtractionTimeout(
                f"Extraction service timeout after {self.timeout:g} seconds"
            ) from e
        except httpx.TransportError as e:
            raise ExtractionAPIError(f"Extraction service unreachable: {e}") from e

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        # httpx timeouts apply per phase; the call as a whole gets one deadline
        try:
            if self._client is not None:
                response = await asyncio.wait_for(
                    self._client.post(self.base_url, json=payload, headers=headers, timeout=self.timeout),
                    timeout=self.timeout,
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await asyncio.wait_for(
                        client.post(self.base_url, json=payload, headers=headers),
                        timeout=self.timeout,
                    )
        except asyncio.TimeoutError as e:
            raise httpx.TimeoutException(f"No complete response within {self.timeout:g} seconds") from e

        if response.is_error:
            logger.warning(
                "Extraction service returned an error",
                extra={"status_code": response.status_code, "error_body": response.text[:500]},
            )
        response.raise_for_status()
        return response

    @staticmethod
    def _message_content(response: httpx.Response) -> str:
        try:
            body = response.json()
            choice = body["choices"][0]
            content = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponse(f"Unexpected extraction service response: {e}") from e

        finish_reason = choice.get("finish_reason")
        if finish_reason == "length":
            logger.warning("Extraction response may be truncated by the completion token limit")
        if not isinstance(content, str):
            raise MalformedResponse("Extraction response has no text content")

        logger.info(f"Response length: {len(content)} characters, finish_reason: {finish_reason}")
        return content
