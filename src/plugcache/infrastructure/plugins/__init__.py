from .cache_manager import PluginCacheManager
from .naming import derive_artifact_name
from .reaper import reap
from .wasm_host import WasmFormatter, WasmPluginDecoder

__all__ = [
    "PluginCacheManager",
    "WasmFormatter",
    "WasmPluginDecoder",
    "derive_artifact_name",
    "reap",
]
