"""Port for downloading plugin artifacts."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ArtifactFetcherPort(Protocol):
    """Async retrieval of raw artifact bytes for a plugin source URL.

    Implementations raise ``ArtifactFetchError`` on any transport failure,
    timeout or non-success response.
    """

    async def fetch(self, url: str) -> bytes: ...
