from .base import FormatterProtocol, GlobalConfig
from .exceptions import (
    ArtifactFetchError,
    CatalogFetchError,
    CatalogValidationError,
    FetchError,
    FormatError,
    PlugcacheError,
    PluginDecodeError,
    PluginError,
)

__all__ = [
    "ArtifactFetchError",
    "CatalogFetchError",
    "CatalogValidationError",
    "FetchError",
    "FormatError",
    "FormatterProtocol",
    "GlobalConfig",
    "PlugcacheError",
    "PluginDecodeError",
    "PluginError",
]
