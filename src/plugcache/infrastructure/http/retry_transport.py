"""httpx transport that retries throttled responses and dropped connections."""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import httpx
import structlog

log = structlog.get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 503})

# Connection never established or dropped mid-response. Timeouts are not
# retried.
RETRYABLE_ERRORS: tuple[type[httpx.TransportError], ...] = (
    httpx.ConnectError,
    httpx.RemoteProtocolError,
    httpx.ReadError,
)


def parse_retry_after(
    value: str | None, *, now: datetime | None = None
) -> float | None:
    """Delay in seconds from a ``Retry-After`` value (seconds or HTTP-date)."""
    if value is None:
        return None
    value = value.strip()

    try:
        return max(float(value), 0.0)
    except ValueError:
        pass

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max((when - now).total_seconds(), 0.0)


class RetryTransport(httpx.AsyncBaseTransport):
    """Wraps a transport; retries 429/503 and transient connection errors.

    Up to *max_retries* extra attempts, each preceded by exponential
    backoff with jitter, or by the server's ``Retry-After`` when given.
    The final attempt's response (or error) is returned unchanged.
    """

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        max_backoff: float = 30.0,
        retryable_status_codes: frozenset[int] = RETRYABLE_STATUS_CODES,
    ) -> None:
        self._wrapped = wrapped
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._max_backoff = max_backoff
        self._retryable = retryable_status_codes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        attempt = 0
        while True:
            try:
                response = await self._wrapped.handle_async_request(request)
            except RETRYABLE_ERRORS as e:
                if attempt >= self._max_retries:
                    raise
                delay = self._backoff(attempt)
                log.info(
                    "http_retry_after_error",
                    url=str(request.url),
                    error_type=type(e).__name__,
                    attempt=attempt + 1,
                    delay=round(delay, 2),
                )
            else:
                if response.status_code not in self._retryable:
                    return response
                if attempt >= self._max_retries:
                    return response

                # Drain and release the connection before the next attempt.
                await response.aread()
                await response.aclose()

                retry_after = parse_retry_after(response.headers.get("retry-after"))
                delay = (
                    min(retry_after, self._max_backoff)
                    if retry_after is not None
                    else self._backoff(attempt)
                )
                log.info(
                    "http_retry_after_status",
                    url=str(request.url),
                    status=response.status_code,
                    attempt=attempt + 1,
                    delay=round(delay, 2),
                )

            await asyncio.sleep(delay)
            attempt += 1

    def _backoff(self, attempt: int) -> float:
        delay = self._backoff_base * (2**attempt)
        jitter = random.uniform(0, self._backoff_base)  # noqa: S311
        return min(delay + jitter, self._max_backoff)

    async def aclose(self) -> None:
        await self._wrapped.aclose()
