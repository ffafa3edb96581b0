from .catalog import PluginCatalog, PluginInfo
from .lock import LockEntry, LockLoadReason, LockLoadResult, LockManifest

__all__ = [
    "LockEntry",
    "LockLoadReason",
    "LockLoadResult",
    "LockManifest",
    "PluginCatalog",
    "PluginInfo",
]
