"""Resilient HTTP Client: httpx wrapper with timeout, bounded retry, backoff, and error mapping.

Invariants:
    - Every request has an explicit timeout
    - Connection errors, timeouts, 429 and 5xx: retried up to max_retries with backoff
    - Other 4xx: immediate failure, no retry
    - All failures mapped to UpstreamError (core/errors.py); causes logged, never returned

Design Decisions:
    - One wrapper shared by the credential and image-search clients
    - ±25% jitter on backoff, Retry-After honoured on 429
"""

import asyncio
import random
import logging
from typing import Any

import httpx

from elevenpoints.core.errors import ErrorContext, UpstreamError

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class ResilientHTTPClient:
    """GET-JSON client for one upstream provider."""

    def __init__(
        self,
        upstream: str,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout_seconds: float = 15.0,
        max_retries: int = 2,
        base_delay_ms: int = 500,
        max_delay_ms: int = 8_000,
        propagate_status: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.upstream = upstream
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.propagate_status = propagate_status

    async def get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
    ) -> Any:
        """GET `path` and decode the JSON body, retrying transient failures."""
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.get(path, params=params)
            except httpx.TimeoutException as e:
                await self._handle_transient_error(e, attempt, context)
                continue
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, context)
                continue

            if response.status_code in _RETRYABLE_STATUS:
                await self._handle_retryable_status(response, attempt, context)
                continue
            if response.is_error:
                logger.error(
                    f"{self.upstream} rejected request ({response.status_code}): "
                    f"{response.text[:500]}",
                    extra={"upstream": self.upstream, "attempt": attempt + 1},
                )
                raise self._error(response.status_code, context)

            self._log_success(response, attempt)
            try:
                return response.json()
            except ValueError as e:
                logger.error(f"{self.upstream} returned invalid JSON: {e}")
                raise self._error(500, context)

    async def aclose(self) -> None:
        await self.client.aclose()

    def _log_success(self, response: httpx.Response, attempt: int) -> None:
        logger.info(
            f"{self.upstream} request succeeded",
            extra={"upstream": self.upstream, "attempt": attempt + 1},
        )

    async def _handle_transient_error(
        self, e: Exception, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Sleep before the next attempt or raise once retries are spent."""
        if attempt >= self.max_retries:
            logger.error(
                f"{self.upstream} transient failure after {self.max_retries} retries: {e!r}",
                extra={"upstream": self.upstream, "attempt": attempt + 1},
            )
            raise self._error(500, context)
        delay = self._backoff(attempt)
        logger.warning(
            f"{self.upstream} transient error, retry after {delay}ms: {e!r}",
            extra={"upstream": self.upstream, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_retryable_status(
        self, response: httpx.Response, attempt: int, context: ErrorContext | None,
    ) -> None:
        if attempt >= self.max_retries:
            logger.error(
                f"{self.upstream} returned {response.status_code} after "
                f"{self.max_retries} retries",
                extra={"upstream": self.upstream, "attempt": attempt + 1},
            )
            raise self._error(response.status_code, context)
        delay = self._extract_retry_after(response) or self._backoff(attempt)
        logger.warning(
            f"{self.upstream} returned {response.status_code}, retry after {delay}ms",
            extra={"upstream": self.upstream, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _error(self, status_code: int, context: ErrorContext | None) -> UpstreamError:
        http_status = status_code if self.propagate_status else 500
        return UpstreamError(self.upstream, http_status=http_status, context=context)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Retry-After header in milliseconds, when it is an integer."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return min(self.max_delay_ms, int(val) * 1000)
        return None
