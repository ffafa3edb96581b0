"""Artifact download over httpx."""

from __future__ import annotations

import httpx
import structlog

from plugcache.domain.plugins import ArtifactFetchError

log = structlog.get_logger(__name__)


class HttpxArtifactFetcher:
    """Downloads plugin artifacts. Implements ``ArtifactFetcherPort``.

    Transport errors, timeouts and non-2xx responses are raised as
    ``ArtifactFetchError``; nothing is retried here beyond what the
    client's transport already does.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def fetch(self, url: str) -> bytes:
        try:
            resp = await self._http.get(url)
        except httpx.TimeoutException as e:
            log.error("artifact_fetch_timeout", url=url)
            raise ArtifactFetchError(f"Timed out downloading {url}", url=url) from e
        except httpx.HTTPError as e:
            log.error("artifact_fetch_failed", url=url, error_message=str(e))
            raise ArtifactFetchError(f"Failed to download {url}: {e}", url=url) from e

        if not resp.is_success:
            log.error("artifact_fetch_bad_status", url=url, status=resp.status_code)
            raise ArtifactFetchError(
                f"Failed to download {url}: HTTP {resp.status_code}",
                url=url,
                status=resp.status_code,
            )

        log.debug("artifact_downloaded", url=url, size_bytes=len(resp.content))
        return resp.content
