"""Format every supported file under a root directory."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog

from plugcache.domain.plugins import FormatError

from .load_formatters import FormatterSet

log = structlog.get_logger(__name__)


class FileStatus(str, Enum):
    FORMATTED = "formatted"
    CHECKED = "checked"
    SKIPPED = "skipped"
    ERROR = "error"


# Called once per visited file, in walk order.
FileReporter = Callable[[FileStatus, Path], None]


@dataclass
class FormatReport:
    formatted: list[Path] = field(default_factory=list)
    checked: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    errors: list[Path] = field(default_factory=list)

    def add(self, status: FileStatus, path: Path) -> None:
        {
            FileStatus.FORMATTED: self.formatted,
            FileStatus.CHECKED: self.checked,
            FileStatus.SKIPPED: self.skipped,
            FileStatus.ERROR: self.errors,
        }[status].append(path)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def iter_files(root: Path, exclude: Path | None = None) -> Iterator[Path]:
    """Yield regular files below *root* in sorted order, pruning *exclude*."""
    excluded = exclude.resolve() if exclude is not None else None

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            d
            for d in dirnames
            if excluded is None or (current / d).resolve() != excluded
        )
        for name in sorted(filenames):
            yield current / name


class FormatRun:
    """One formatting pass over a directory tree.

    Files without a formatter for their extension are skipped (and only
    reported when ``verbose``). A formatter error or text that is not
    UTF-8 marks the file as ``error`` and leaves it untouched. With
    ``dry_run`` nothing is written, but files are still reported as
    ``formatted`` when they would change.
    """

    def __init__(
        self,
        formatters: FormatterSet,
        *,
        cache_dir: Path,
        dry_run: bool = False,
        verbose: bool = False,
        reporter: FileReporter | None = None,
    ) -> None:
        self._formatters = formatters
        self._cache_dir = cache_dir
        self._dry_run = dry_run
        self._verbose = verbose
        self._reporter = reporter

    async def execute(self, root: Path) -> FormatReport:
        report = FormatReport()

        paths = await asyncio.to_thread(
            lambda: list(iter_files(root, exclude=self._cache_dir))
        )
        for path in paths:
            status = await self._format_file(path)
            if status is FileStatus.SKIPPED and not self._verbose:
                continue
            report.add(status, path)
            if self._reporter is not None:
                self._reporter(status, path)

        log.info(
            "format_run_finished",
            root=str(root),
            dry_run=self._dry_run,
            formatted=len(report.formatted),
            checked=len(report.checked),
            errors=len(report.errors),
        )
        return report

    async def _format_file(self, path: Path) -> FileStatus:
        formatter = self._formatters.for_path(path)
        if formatter is None:
            return FileStatus.SKIPPED

        data = await asyncio.to_thread(path.read_bytes)
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            log.error("file_not_utf8", path=str(path), error=str(e))
            return FileStatus.ERROR

        try:
            formatted = formatter.format_text(str(path), text)
        except FormatError as e:
            log.error("file_format_failed", path=str(path), error=str(e))
            return FileStatus.ERROR

        if formatted == text:
            log.debug("file_checked", path=str(path))
            return FileStatus.CHECKED

        if not self._dry_run:
            await asyncio.to_thread(path.write_bytes, formatted.encode("utf-8"))
        log.debug("file_formatted", path=str(path), dry_run=self._dry_run)
        return FileStatus.FORMATTED
