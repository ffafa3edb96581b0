from .artifact_fetcher import ArtifactFetcherPort
from .plugin_catalog import PluginCatalogPort
from .plugin_decoder import PluginDecoderPort

__all__ = [
    "ArtifactFetcherPort",
    "PluginCatalogPort",
    "PluginDecoderPort",
]
