"""Error types for plugin caching, fetching and formatting."""

from __future__ import annotations


class PlugcacheError(Exception):
    """Base class for all plugcache errors."""


class PluginError(PlugcacheError):
    """Base class for errors raised by a plugin or while loading one."""


class PluginDecodeError(PluginError):
    """Raised when artifact bytes cannot be instantiated as a formatter."""


class FormatError(PluginError):
    """Raised when a formatter fails to transform one input."""


class FetchError(PlugcacheError):
    """Base class for network retrieval failures."""

    def __init__(self, message: str, *, url: str, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ArtifactFetchError(FetchError):
    """Raised when a plugin artifact cannot be downloaded."""


class CatalogFetchError(FetchError):
    """Raised when the plugin catalog cannot be downloaded or parsed."""


class CatalogValidationError(PlugcacheError):
    """Raised when the plugin catalog does not match the expected schema."""
