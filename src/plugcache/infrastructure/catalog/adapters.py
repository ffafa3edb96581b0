"""Adapters to convert Pydantic catalog models to domain models."""

from __future__ import annotations

from plugcache.domain.entities.catalog import PluginCatalog, PluginInfo

from . import validation_schema as infra


def to_domain_plugin_info(pydantic: infra.PluginInfoModel) -> PluginInfo:
    return PluginInfo(
        name=pydantic.name,
        version=pydantic.version,
        url=pydantic.url,
        config_key=pydantic.config_key,
        file_extensions=tuple(pydantic.file_extensions),
        config_schema_url=pydantic.config_schema_url,
        config_excludes=tuple(pydantic.config_excludes),
    )


def to_domain_catalog(pydantic: infra.PluginCatalogModel) -> PluginCatalog:
    return PluginCatalog(
        schema_version=pydantic.schema_version,
        plugin_system_schema_version=pydantic.plugin_system_schema_version,
        latest=tuple(to_domain_plugin_info(p) for p in pydantic.latest),
    )
