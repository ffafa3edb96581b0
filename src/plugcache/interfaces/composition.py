"""Composition root: wires config, HTTP, cache and formatters for one run."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from plugcache.application.use_cases import (
    FormatReport,
    FormatRun,
    load_formatters,
)
from plugcache.application.use_cases.format_files import FileReporter
from plugcache.domain.ports import PluginCatalogPort, PluginDecoderPort
from plugcache.infrastructure.catalog import CatalogClient
from plugcache.infrastructure.config.schema import AppConfig
from plugcache.infrastructure.http import HttpxArtifactFetcher, create_http_client
from plugcache.infrastructure.lockfile import LockStore
from plugcache.infrastructure.plugins import (
    PluginCacheManager,
    WasmPluginDecoder,
    reap,
)

log = structlog.get_logger(__name__)

# Formatter used to restyle the lock file before it is written.
LOCK_FILE_FORMATTER_KEY = "json"


async def run_format(
    config: AppConfig,
    *,
    root: Path,
    dry_run: bool = False,
    verbose: bool = False,
    reporter: FileReporter | None = None,
    decoder: PluginDecoderPort | None = None,
) -> FormatReport:
    """Run the full lifecycle once.

    1. Load the lock file from the cache dir
    2. Fetch the catalog and resolve every plugin (cache first)
    3. Format files under *root*
    4. Reap unreferenced cache entries
    5. Persist the lock file, restyled by the JSON formatter if present
    """
    cache_dir = config.cache_dir.resolve()
    store = LockStore(cache_dir)

    async with create_http_client(config) as http_client:
        manager = await PluginCacheManager.from_store(
            store,
            fetcher=HttpxArtifactFetcher(http_client),
            decoder=decoder or WasmPluginDecoder(),
        )
        catalog_source: PluginCatalogPort = CatalogClient(
            url=config.catalog_url, http_client=http_client
        )
        catalog = await catalog_source.fetch()
        formatters = await load_formatters(
            catalog,
            manager,
            config.global_format_config(),
            policy=config.fetch_failure_policy,
        )

    report = await FormatRun(
        formatters,
        cache_dir=cache_dir,
        dry_run=dry_run,
        verbose=verbose,
        reporter=reporter,
    ).execute(root)

    # Every resolution has completed at this point.
    removed = await asyncio.to_thread(
        reap, cache_dir, manager.manifest, manifest_file_name=store.file_name
    )
    if removed:
        log.info("cache_reaped", removed=len(removed))

    lock_formatter = formatters.by_key.get(LOCK_FILE_FORMATTER_KEY)
    await store.persist(
        manager.manifest,
        renderer=lock_formatter.format_text if lock_formatter else None,
    )
    return report

