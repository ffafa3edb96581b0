"""Port for reading the list of available plugins."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from plugcache.domain.entities.catalog import PluginCatalog


@runtime_checkable
class PluginCatalogPort(Protocol):
    async def fetch(self) -> PluginCatalog: ...
