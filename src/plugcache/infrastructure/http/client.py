"""Shared httpx client construction."""

from __future__ import annotations

import httpx
import structlog

from plugcache.infrastructure.config.schema import AppConfig

from .retry_transport import RetryTransport

log = structlog.get_logger(__name__)


def create_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Build the AsyncClient used for the catalog and plugin downloads.

    Every request is bounded by ``http_timeout_seconds``; a request that
    exceeds it raises ``httpx.TimeoutException``.
    """
    transport = RetryTransport(
        wrapped=httpx.AsyncHTTPTransport(),
        max_retries=config.http_max_retries,
    )
    client = httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=True,
    )
    log.debug(
        "http_client_initialized",
        timeout_seconds=config.http_timeout_seconds,
        max_retries=config.http_max_retries,
    )
    return client
