"""Pydantic validation models for the plugin catalog (info.json)."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class PluginInfoModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: StrictStr
    version: StrictStr
    url: StrictStr
    config_key: StrictStr = Field(alias="configKey")
    file_extensions: List[StrictStr] = Field(alias="fileExtensions")
    config_schema_url: StrictStr = Field(alias="configSchemaUrl")
    config_excludes: List[StrictStr] = Field(alias="configExcludes")


class PluginCatalogModel(BaseModel):
    """Top-level catalog document; only schema v2 / plugin system v3 is accepted."""

    model_config = ConfigDict(populate_by_name=True)

    schema_version: Literal[2] = Field(alias="schemaVersion")
    plugin_system_schema_version: Literal[3] = Field(alias="pluginSystemSchemaVersion")
    latest: List[PluginInfoModel]
