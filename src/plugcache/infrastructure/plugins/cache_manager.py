"""Plugin cache manager: lazy, hash-verified resolution of plugin URLs."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from plugcache.domain.entities.lock import LockEntry, LockManifest
from plugcache.domain.plugins import FormatterProtocol
from plugcache.domain.ports import ArtifactFetcherPort, PluginDecoderPort
from plugcache.infrastructure.lockfile import (
    LockStore,
    compute_content_hash,
    verify_content,
)

from .naming import derive_artifact_name

log = structlog.get_logger(__name__)


def _write_artifact(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


class PluginCacheManager:
    """
    Resolves plugin source URLs to ready formatters.

    resolve():
      - in-memory hit: returned with no I/O
      - lock entry + intact artifact: decoded from disk, no network
      - otherwise: downloaded, written to the cache dir, lock entry replaced

    Resolution is serialized per URL, so concurrent calls for the same URL
    download it at most once. Different URLs resolve concurrently.
    """

    def __init__(
        self,
        *,
        cache_dir: Path,
        manifest: LockManifest,
        fetcher: ArtifactFetcherPort,
        decoder: PluginDecoderPort,
    ) -> None:
        self._cache_dir = cache_dir
        self._manifest = manifest
        self._fetcher = fetcher
        self._decoder = decoder

        self._formatters: dict[str, FormatterProtocol] = {}
        self._key_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    async def from_store(
        cls,
        store: LockStore,
        *,
        fetcher: ArtifactFetcherPort,
        decoder: PluginDecoderPort,
    ) -> PluginCacheManager:
        """Load the lock file once and build a manager around it."""
        result = await store.load()
        return cls(
            cache_dir=store.path.parent,
            manifest=result.manifest,
            fetcher=fetcher,
            decoder=decoder,
        )

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def manifest(self) -> LockManifest:
        return self._manifest

    @property
    def loaded_count(self) -> int:
        return len(self._formatters)

    async def resolve(self, source_id: str) -> FormatterProtocol:
        formatter = self._formatters.get(source_id)
        if formatter is not None:
            return formatter

        lock = self._key_locks.setdefault(source_id, asyncio.Lock())
        async with lock:
            # Another task may have finished while we waited.
            formatter = self._formatters.get(source_id)
            if formatter is not None:
                return formatter

            formatter = await self._load_cached(source_id)
            if formatter is None:
                formatter = await self._fetch_and_store(source_id)

            self._formatters[source_id] = formatter
            return formatter

    async def _load_cached(self, source_id: str) -> FormatterProtocol | None:
        """Decode the locked artifact if it exists and its hash matches."""
        entry = self._manifest.get(source_id)
        if entry is None:
            return None

        path = self._cache_dir / entry.file_name
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            log.info(
                "cached_artifact_missing",
                url=source_id,
                file_name=entry.file_name,
            )
            self._manifest.remove(source_id)
            return None

        if not verify_content(data, entry.content_hash):
            log.warning(
                "artifact_checksum_mismatch",
                url=source_id,
                file_name=entry.file_name,
            )
            self._manifest.remove(source_id)
            return None

        formatter = self._decoder.decode(data)
        log.debug("plugin_loaded_from_cache", url=source_id, file_name=entry.file_name)
        return formatter

    async def _fetch_and_store(self, source_id: str) -> FormatterProtocol:
        file_name = derive_artifact_name(source_id)

        data = await self._fetcher.fetch(source_id)
        formatter = self._decoder.decode(data)

        entry = LockEntry(file_name=file_name, content_hash=compute_content_hash(data))
        await asyncio.to_thread(_write_artifact, self._cache_dir / file_name, data)
        self._manifest.set(source_id, entry)

        log.info(
            "artifact_fetched",
            url=source_id,
            file_name=file_name,
            size_bytes=len(data),
        )
        return formatter
