"""Cache reaper: removes cache entries no lock entry refers to."""

from __future__ import annotations

import shutil
from pathlib import Path

import structlog

from plugcache.domain.entities.lock import LockManifest
from plugcache.infrastructure.lockfile import LOCK_FILE_NAME

log = structlog.get_logger(__name__)


def reap(
    cache_dir: Path,
    manifest: LockManifest,
    *,
    keep_manifest_file: bool = True,
    manifest_file_name: str = LOCK_FILE_NAME,
) -> list[Path]:
    """
    Delete every direct child of *cache_dir* not named by *manifest*.

    Destructive: call only once every resolution of the run has finished,
    otherwise artifacts of plugins resolved later are lost. Directories are
    removed recursively. A missing *cache_dir* is a no-op.

    Returns the removed paths.
    """
    retain = manifest.file_names()
    if keep_manifest_file:
        retain.add(manifest_file_name)

    try:
        children = sorted(cache_dir.iterdir())
    except FileNotFoundError:
        return []

    removed: list[Path] = []
    for path in children:
        if path.name in retain:
            continue

        log.info("cache_entry_removed", path=str(path))
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
        removed.append(path)

    return removed
