"""Lock file persistence: tolerant load, deterministic atomic write."""

from __future__ import annotations

import asyncio
import json
import os
import stat
import tempfile
from collections.abc import Callable
from contextlib import suppress
from pathlib import Path

import structlog
from pydantic import ValidationError

from plugcache.domain.entities.lock import LockLoadReason, LockLoadResult, LockManifest
from plugcache.domain.plugins import FormatError

from .schema import LOCK_FILE_ADAPTER, to_domain_manifest, to_lock_document

log = structlog.get_logger(__name__)

LOCK_FILE_NAME = "plugin-lock.json"

# (file_path, text) -> restyled text; a formatter's format_text fits this.
LockRenderer = Callable[[str, str], str]

_DEFAULT_INDENT = 4


def load_lock_file(path: Path) -> LockLoadResult:
    """Read and validate a lock file.

    Absent, undecodable, unparsable (including nesting too deep to decode)
    or schema-invalid files yield an empty manifest plus the reason. Any other OSError (permissions, path is a
    directory, ...) propagates.
    """
    try:
        raw_bytes = path.read_bytes()
    except FileNotFoundError:
        return LockLoadResult(reason=LockLoadReason.ABSENT, detail=str(path))

    try:
        raw = raw_bytes.decode("utf-8")
    except UnicodeDecodeError as e:
        return LockLoadResult(reason=LockLoadReason.UNDECODABLE, detail=str(e))

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, RecursionError) as e:
        return LockLoadResult(reason=LockLoadReason.INVALID_JSON, detail=str(e))

    try:
        entries = LOCK_FILE_ADAPTER.validate_python(data)
    except ValidationError as e:
        return LockLoadResult(
            reason=LockLoadReason.INVALID_SCHEMA,
            detail=f"{e.error_count()} validation error(s)",
        )

    return LockLoadResult(manifest=to_domain_manifest(entries))


def render_lock_file(
    path: Path, manifest: LockManifest, renderer: LockRenderer | None = None
) -> str:
    """Serialize *manifest*; optionally restyle it with *renderer*."""
    text = json.dumps(to_lock_document(manifest), indent=_DEFAULT_INDENT) + "\n"
    if renderer is None:
        return text

    try:
        return renderer(str(path), text)
    except FormatError as e:
        log.warning(
            "lock_file_render_failed",
            lock_file=str(path),
            error_message=str(e),
        )
        return text


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _write_text_atomic(path: Path, text: str) -> None:
    """Replace *path* by writing a sibling temp file and renaming it.

    The result keeps the mode of the file it replaces, or the umask default
    for a new file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_name = handle.name
            handle.write(text)
        os.chmod(temp_name, _target_mode(path))
    except Exception:
        if temp_name:
            with suppress(FileNotFoundError):
                Path(temp_name).unlink()
        raise

    assert temp_name is not None
    os.replace(temp_name, path)


def persist_lock_file(
    path: Path, manifest: LockManifest, renderer: LockRenderer | None = None
) -> None:
    """Write *manifest* to *path*, fully replacing prior contents."""
    _write_text_atomic(path, render_lock_file(path, manifest, renderer))


class LockStore:
    """Async facade over the lock file at ``<cache_dir>/plugin-lock.json``.

    Disk I/O runs in a worker thread; the returned manifest is the single
    shared instance handed to the cache manager and the reaper.
    """

    def __init__(self, cache_dir: Path, file_name: str = LOCK_FILE_NAME) -> None:
        self._cache_dir = cache_dir
        self._path = cache_dir / file_name

    @property
    def path(self) -> Path:
        return self._path

    @property
    def file_name(self) -> str:
        return self._path.name

    async def load(self) -> LockLoadResult:
        result = await asyncio.to_thread(load_lock_file, self._path)

        if result.corrupted:
            log.warning(
                "lock_file_corrupted",
                lock_file=str(self._path),
                reason=result.reason.value if result.reason else None,
                detail=result.detail,
            )
        elif result.reason is LockLoadReason.ABSENT:
            log.info("lock_file_absent", lock_file=str(self._path))
        else:
            log.debug(
                "lock_file_loaded",
                lock_file=str(self._path),
                entries=len(result.manifest),
            )
        return result

    async def persist(
        self, manifest: LockManifest, renderer: LockRenderer | None = None
    ) -> None:
        text = render_lock_file(self._path, manifest, renderer)
        await asyncio.to_thread(_write_text_atomic, self._path, text)
        log.info("lock_file_written", lock_file=str(self._path), entries=len(manifest))
