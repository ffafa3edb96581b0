from .client import create_http_client
from .fetcher import HttpxArtifactFetcher
from .retry_transport import RetryTransport

__all__ = ["HttpxArtifactFetcher", "RetryTransport", "create_http_client"]
