"""Shared test fixtures for the plugcache test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from plugcache.domain.entities import LockManifest, PluginCatalog, PluginInfo
from plugcache.domain.plugins import (
    ArtifactFetchError,
    FormatError,
    GlobalConfig,
    PluginDecodeError,
)

# ---------------------------------------------------------------------------
# Fakes for the plugin host and network ports
# ---------------------------------------------------------------------------


def _normalize_trailing_newline(text: str) -> str:
    return text.rstrip() + "\n"


class FakeFormatter:
    """Formatter that strips trailing whitespace and ends text with one newline.

    Raises FormatError for any text containing ``!!error``.
    """

    def __init__(
        self,
        payload: bytes,
        transform: Callable[[str], str] = _normalize_trailing_newline,
    ) -> None:
        self.payload = payload
        self.transform = transform
        self.global_config: GlobalConfig | None = None
        self.plugin_config: dict[str, Any] | None = None
        self.calls: list[str] = []

    def configure(
        self, global_config: GlobalConfig, plugin_config: dict[str, Any]
    ) -> None:
        self.global_config = global_config
        self.plugin_config = plugin_config

    def format_text(self, file_path: str, text: str) -> str:
        self.calls.append(file_path)
        if "!!error" in text:
            raise FormatError(f"cannot format {file_path}")
        return self.transform(text)


class FakeDecoder:
    """Decodes any payload except ones starting with ``bad``."""

    def __init__(self) -> None:
        self.decoded: list[bytes] = []

    def decode(self, data: bytes) -> FakeFormatter:
        if data.startswith(b"bad"):
            raise PluginDecodeError("not a plugin")
        self.decoded.append(data)
        return FakeFormatter(data)


class FakeFetcher:
    """In-memory artifact fetcher that records every call."""

    def __init__(
        self,
        payloads: dict[str, bytes] | None = None,
        *,
        failing: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.payloads = dict(payloads or {})
        self.failing = set(failing or ())
        self.delay = delay
        self.calls: list[str] = []

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if url in self.failing or url not in self.payloads:
            raise ArtifactFetchError(f"Failed to fetch {url}", url=url, status=404)
        return self.payloads[url]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

PLUGIN_URL = "https://x/y.wasm"
JSON_PLUGIN_URL = "https://plugins.example.test/json-0.17.0.wasm"
MD_PLUGIN_URL = "https://plugins.example.test/markdown-0.15.0.wasm"


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    """Cache directory path (not created)."""
    return tmp_path / ".dprint-cache"


@pytest.fixture()
def manifest() -> LockManifest:
    return LockManifest()


@pytest.fixture()
def decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher(
        {
            PLUGIN_URL: b"plugin-y-v1",
            JSON_PLUGIN_URL: b"plugin-json",
            MD_PLUGIN_URL: b"plugin-markdown",
        }
    )


@pytest.fixture()
def catalog() -> PluginCatalog:
    """Catalog with a JSON and a Markdown plugin."""
    return PluginCatalog(
        schema_version=2,
        plugin_system_schema_version=3,
        latest=(
            PluginInfo(
                name="dprint-plugin-json",
                version="0.17.0",
                url=JSON_PLUGIN_URL,
                config_key="json",
                file_extensions=("json",),
            ),
            PluginInfo(
                name="dprint-plugin-markdown",
                version="0.15.0",
                url=MD_PLUGIN_URL,
                config_key="markdown",
                file_extensions=("md", "MARKDOWN"),
            ),
        ),
    )
