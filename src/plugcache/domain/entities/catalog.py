"""Domain entities for the remote plugin catalog."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PluginInfo:
    """One entry of the catalog's ``latest`` list."""

    name: str
    version: str
    url: str
    config_key: str
    file_extensions: tuple[str, ...] = ()
    config_schema_url: str = ""
    config_excludes: tuple[str, ...] = ()


@dataclass(frozen=True)
class PluginCatalog:
    """Validated plugin catalog."""

    schema_version: int
    plugin_system_schema_version: int
    latest: tuple[PluginInfo, ...] = field(default_factory=tuple)
