"""Protocols for loaded formatter plugins."""

from __future__ import annotations

from typing import Any, Protocol

# Global formatting options shared by every plugin (dprint "GlobalConfiguration").
GlobalConfig = dict[str, Any]


class FormatterProtocol(Protocol):
    """
    Opaque capability produced by decoding a plugin artifact.

    - configure(): applies global + plugin specific options
    - format_text(): returns the formatted text or raises FormatError
    """

    def configure(
        self, global_config: GlobalConfig, plugin_config: dict[str, Any]
    ) -> None: ...

    def format_text(self, file_path: str, text: str) -> str: ...
