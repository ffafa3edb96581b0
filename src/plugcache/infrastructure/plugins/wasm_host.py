"""dprint Wasm plugin host (plugin schema v3) on top of wasmtime.

A plugin exchanges strings with the host through a fixed-size window in
its linear memory: the host copies UTF-8 bytes in chunks into that window
and asks the plugin to append them to its "shared bytes", and reads
results back the same way.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import structlog
import wasmtime

from plugcache.domain.plugins import FormatError, GlobalConfig, PluginDecodeError

log = structlog.get_logger(__name__)

SUPPORTED_SCHEMA_VERSIONS = frozenset({3})

# Failures raised from inside guest code.
_GUEST_ERRORS = (wasmtime.WasmtimeError, wasmtime.Trap)

# format() response codes
_NO_CHANGE = 0
_CHANGE = 1
_ERROR = 2


def _host_stub(result_count: int) -> Callable[..., Any]:
    """Host import that does nothing; the host never formats on the plugin's behalf."""

    def stub(*_args: Any) -> Any:
        if result_count == 0:
            return None
        if result_count == 1:
            return 0
        return tuple(0 for _ in range(result_count))

    return stub


class WasmFormatter:
    """Formatter backed by one instantiated dprint Wasm plugin."""

    def __init__(self, store: wasmtime.Store, instance: wasmtime.Instance) -> None:
        self._store = store
        self._exports = instance.exports(store)
        self._memory: wasmtime.Memory = self._export("memory")
        self._buffer_size: int = self._call("get_wasm_memory_buffer_size")
        self._configured = False

        version = self._call("get_plugin_schema_version")
        if version not in SUPPORTED_SCHEMA_VERSIONS:
            raise PluginDecodeError(
                f"Unsupported plugin schema version {version}, "
                f"expected one of {sorted(SUPPORTED_SCHEMA_VERSIONS)}"
            )
        self.schema_version: int = version

    # ------------------------------------------------------------------
    # Public API (FormatterProtocol)
    # ------------------------------------------------------------------

    def configure(
        self, global_config: GlobalConfig, plugin_config: dict[str, Any]
    ) -> None:
        try:
            self._apply_config(global_config, plugin_config)
        except _GUEST_ERRORS as e:
            raise PluginDecodeError(f"Plugin failed to apply configuration: {e}") from e

    def format_text(self, file_path: str, text: str) -> str:
        """Format *text*; any failure of the plugin on this input is a FormatError."""
        try:
            if not self._configured:
                self._apply_config({}, {})
            return self._format(file_path, text)
        except _GUEST_ERRORS as e:
            raise FormatError(f"Plugin crashed formatting {file_path}: {e}") from e
        except UnicodeDecodeError as e:
            raise FormatError(f"Plugin returned invalid UTF-8 for {file_path}") from e

    def _apply_config(
        self, global_config: GlobalConfig, plugin_config: dict[str, Any]
    ) -> None:
        if self._has_export("reset_config"):
            self._call("reset_config")
        self._send_string(json.dumps(global_config))
        self._call("set_global_config")
        self._send_string(json.dumps(plugin_config))
        self._call("set_plugin_config")
        self._configured = True

    def _format(self, file_path: str, text: str) -> str:
        self._send_string(file_path)
        self._call("set_file_path")
        self._send_string(text)

        code = self._call("format")
        if code == _NO_CHANGE:
            return text
        if code == _CHANGE:
            return self._receive_string(self._call("get_formatted_text"))
        if code == _ERROR:
            raise FormatError(self._receive_string(self._call("get_error_text")))
        raise FormatError(f"Unexpected response code: {code}")

    # ------------------------------------------------------------------
    # Shared-buffer protocol
    # ------------------------------------------------------------------

    def _send_string(self, text: str) -> None:
        data = text.encode("utf-8")
        self._call("clear_shared_bytes", len(data))

        index = 0
        while index < len(data):
            count = min(len(data) - index, self._buffer_size)
            pointer = self._call("get_wasm_memory_buffer")
            self._memory.write(self._store, data[index : index + count], pointer)
            self._call("add_to_shared_bytes_from_buffer", count)
            index += count

    def _receive_string(self, length: int) -> str:
        out = bytearray()

        index = 0
        while index < length:
            count = min(length - index, self._buffer_size)
            self._call("set_buffer_with_shared_bytes", index, count)
            pointer = self._call("get_wasm_memory_buffer")
            out += self._memory.read(self._store, pointer, pointer + count)
            index += count

        return out.decode("utf-8")

    def _has_export(self, name: str) -> bool:
        try:
            self._exports[name]
        except KeyError:
            return False
        return True

    def _export(self, name: str) -> Any:
        try:
            return self._exports[name]
        except KeyError as e:
            raise PluginDecodeError(f"Plugin does not export '{name}'") from e

    def _call(self, name: str, *args: int) -> Any:
        return self._export(name)(self._store, *args)


class WasmPluginDecoder:
    """Instantiates dprint Wasm plugins. Implements ``PluginDecoderPort``."""

    def __init__(self, engine: wasmtime.Engine | None = None) -> None:
        self._engine = engine or wasmtime.Engine()

    def decode(self, data: bytes) -> WasmFormatter:
        try:
            module = wasmtime.Module(self._engine, data)
        except wasmtime.WasmtimeError as e:
            raise PluginDecodeError(f"Invalid Wasm module: {e}") from e

        linker = wasmtime.Linker(self._engine)
        for imp in module.imports:
            ty = imp.type
            if not isinstance(ty, wasmtime.FuncType):
                raise PluginDecodeError(
                    f"Unsupported import {imp.module}.{imp.name}: {type(ty).__name__}"
                )
            linker.define_func(imp.module, imp.name, ty, _host_stub(len(ty.results)))

        store = wasmtime.Store(self._engine)
        try:
            instance = linker.instantiate(store, module)
            formatter = WasmFormatter(store, instance)
        except _GUEST_ERRORS as e:
            raise PluginDecodeError(f"Failed to instantiate plugin: {e}") from e

        log.debug("wasm_plugin_instantiated", schema_version=formatter.schema_version)
        return formatter
