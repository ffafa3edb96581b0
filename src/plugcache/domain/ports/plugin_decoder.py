"""Port for turning artifact bytes into a formatter."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from plugcache.domain.plugins.base import FormatterProtocol


@runtime_checkable
class PluginDecoderPort(Protocol):
    """Instantiate a formatter from raw plugin bytes (raises PluginDecodeError)."""

    def decode(self, data: bytes) -> FormatterProtocol: ...
