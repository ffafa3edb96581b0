"""Resolve every catalog plugin into a configured formatter."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import structlog

from plugcache.domain.entities import PluginCatalog, PluginInfo
from plugcache.domain.plugins import (
    ArtifactFetchError,
    FormatterProtocol,
    GlobalConfig,
)
from plugcache.infrastructure.plugins import PluginCacheManager

log = structlog.get_logger(__name__)

FetchFailurePolicy = Literal["abort", "skip"]


@dataclass(frozen=True)
class FormatterSet:
    """Configured formatters indexed by config key and by file extension."""

    by_key: dict[str, FormatterProtocol] = field(default_factory=dict)
    by_extension: dict[str, FormatterProtocol] = field(default_factory=dict)

    def for_path(self, path: Path) -> FormatterProtocol | None:
        return self.by_extension.get(path.suffix.lower())

    def __len__(self) -> int:
        return len(self.by_key)


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


async def load_formatters(
    catalog: PluginCatalog,
    manager: PluginCacheManager,
    global_config: GlobalConfig,
    *,
    policy: FetchFailurePolicy = "abort",
) -> FormatterSet:
    """Resolve all ``catalog.latest`` plugins concurrently.

    Args:
        catalog: Validated plugin catalog.
        manager: Cache manager used for every resolution.
        global_config: Options passed to each formatter's ``configure``.
        policy: ``abort`` re-raises the first ``ArtifactFetchError`` once
            every resolution of the batch has settled; ``skip`` logs it and
            leaves that plugin out of the set.

    Returns:
        FormatterSet with one entry per resolved plugin.

    Raises:
        ArtifactFetchError: A download failed and policy is ``abort``.
        PluginDecodeError: A downloaded or cached artifact is not a plugin.
    """
    plugins = catalog.latest
    results = await asyncio.gather(
        *(manager.resolve(info.url) for info in plugins),
        return_exceptions=True,
    )

    formatters = FormatterSet()
    for info, result in zip(plugins, results):
        if isinstance(result, ArtifactFetchError) and policy == "skip":
            log.warning(
                "plugin_skipped",
                plugin=info.name,
                url=info.url,
                error=str(result),
            )
            continue
        if isinstance(result, BaseException):
            raise result

        _register(formatters, info, result, global_config)

    log.info(
        "formatters_loaded",
        count=len(formatters),
        extensions=sorted(formatters.by_extension),
    )
    return formatters


def _register(
    formatters: FormatterSet,
    info: PluginInfo,
    formatter: FormatterProtocol,
    global_config: GlobalConfig,
) -> None:
    formatter.configure(global_config, {})
    formatters.by_key[info.config_key] = formatter
    for ext in info.file_extensions:
        formatters.by_extension[_normalize_extension(ext)] = formatter
