"""Lock file management for cached plugins."""

from .hashing import compute_content_hash, verify_content
from .store import (
    LOCK_FILE_NAME,
    LockRenderer,
    LockStore,
    load_lock_file,
    persist_lock_file,
    render_lock_file,
)

__all__ = [
    "LOCK_FILE_NAME",
    "LockRenderer",
    "LockStore",
    "compute_content_hash",
    "load_lock_file",
    "persist_lock_file",
    "render_lock_file",
    "verify_content",
]
