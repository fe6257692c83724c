"""Archive mutation engine.

Reconciles a set of filesystem paths with the entries of one open archive
(add / skip / overwrite per entry) and writes archive entries back to disk.

Per-item problems never abort a batch: they are logged and recorded in the
returned report, and processing continues with the next item.
"""

from __future__ import annotations

import contextlib
import os
import re
import time
import zipfile
import zlib
from collections.abc import Iterable
from pathlib import Path

from zipmason.core.errors import DirectoryCreateFailedError, FileError, InvalidEntryNameError
from zipmason.core.logging import get_logger

from ..ops import ensure_directory
from ..streams import copy_stream, open_write
from ..types import FileResult, FilesystemPath
from .handle import ArchiveHandle
from .index import EntryIndex
from .names import child_base, entry_parts, is_directory_entry, map_entry_name, split_entry_name
from .types import (
    AddedEntry,
    AddReport,
    ArchiveEntry,
    CompressionLevel,
    ExtractReport,
    IssueKind,
    ItemIssue,
)

log = get_logger(__name__)

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def _is_unsafe_entry_name(name: str) -> bool:
    if name.startswith(("/", "\\")) or _DRIVE_PREFIX.match(name):
        return True
    return any(part == ".." for part in entry_parts(name))


def _record(report: AddReport | ExtractReport, item: str, kind: IssueKind, message: str) -> None:
    report.issues.append(ItemIssue(item=item, kind=kind, message=message))
    if kind == IssueKind.CONFLICT:
        log.warning(message)
    else:
        log.error(message)


class ArchiveMutationEngine:
    """Drives entry-level add and extract work against one ArchiveHandle.

    The handle is owned by the caller; the engine only borrows it.
    """

    def __init__(
        self,
        handle: ArchiveHandle,
        *,
        compression: CompressionLevel = CompressionLevel.OPTIMAL,
    ) -> None:
        self._handle = handle
        self._index = EntryIndex(handle)
        self._compression = compression

    @property
    def index(self) -> EntryIndex:
        return self._index

    # -- add --------------------------------------------------------------

    def add_paths(self, paths: Iterable[FilesystemPath], *, overwrite: bool) -> AddReport:
        """Add files and directory trees; each top-level path starts at base ''."""
        report = AddReport()
        visited: set[Path] = set()
        for item in paths:
            if item.is_dir:
                self.add_directory(
                    item.path, "", overwrite=overwrite, report=report, visited=visited
                )
            else:
                self.add_file(item.path, "", overwrite=overwrite, report=report)
        return report

    def add_directory(
        self,
        directory: Path,
        base: str,
        *,
        overwrite: bool,
        report: AddReport,
        visited: set[Path] | None = None,
    ) -> None:
        """Add every file below ``directory``; the directory itself adds no entry."""
        visited = visited if visited is not None else set()
        real = directory.resolve()
        if real in visited:
            log.verbose(f"archive.add skip directory cycle path={str(directory)!r}")
            return
        visited.add(real)

        try:
            children = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            _record(
                report,
                str(directory),
                IssueKind.IO_ERROR,
                f"Cannot read directory {directory}: {e.strerror or e}",
            )
            return

        for child in children:
            if child.is_dir():
                self.add_directory(
                    child,
                    child_base(base, child.name),
                    overwrite=overwrite,
                    report=report,
                    visited=visited,
                )
            else:
                self.add_file(child, base, overwrite=overwrite, report=report)

    def add_file(self, source: Path, base: str, *, overwrite: bool, report: AddReport) -> None:
        """Add one file under the ``base`` context, honoring the conflict policy."""
        if source.resolve() == self._handle.path.resolve():
            log.verbose(f"archive.add skip archive itself path={str(source)!r}")
            return

        try:
            entry_name = map_entry_name(source.name, base)
        except InvalidEntryNameError as e:
            _record(report, str(source), IssueKind.INVALID_ENTRY_NAME, e.message)
            return

        if not source.is_file():
            _record(
                report,
                str(source),
                IssueKind.IO_ERROR,
                f"Not a regular file, skipped: {source}",
            )
            return

        if not overwrite and self._index.exists(entry_name):
            _record(
                report,
                entry_name,
                IssueKind.CONFLICT,
                f"Entry already exists, skipped: {entry_name} (use force to overwrite)",
            )
            return

        try:
            replaced = self._index.delete_if_exists(entry_name)
            info = self._handle.write_file(source, entry_name, self._compression)
        except (OSError, ValueError, FileError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            _record(report, entry_name, IssueKind.IO_ERROR, f"Cannot add {source}: {reason}")
            return

        report.added.append(
            AddedEntry(
                source_path=source,
                entry_name=entry_name,
                size=int(info.file_size),
                replaced=replaced,
            )
        )
        log.verbose(
            f"archive.add entry={entry_name!r} bytes={info.file_size} "
            f"compressed={info.compress_size} replaced={replaced}"
        )

    # -- extract ----------------------------------------------------------

    def extract_entries(
        self, entries: Iterable[ArchiveEntry], destination: Path, *, overwrite: bool
    ) -> ExtractReport:
        """Write entries below ``destination``, creating directories as needed."""
        report = ExtractReport()
        for entry in entries:
            self._extract_one(entry.name, destination, overwrite=overwrite, report=report)
        return report

    def _extract_one(
        self, name: str, destination: Path, *, overwrite: bool, report: ExtractReport
    ) -> None:
        if _is_unsafe_entry_name(name):
            _record(
                report,
                name,
                IssueKind.UNSAFE_ENTRY,
                f"Entry escapes destination, skipped: {name}",
            )
            return
        if not entry_parts(name):
            _record(report, name, IssueKind.INVALID_ENTRY_NAME, f"Empty entry name: {name!r}")
            return

        if is_directory_entry(name):
            try:
                created = ensure_directory(destination.joinpath(*entry_parts(name)))
            except DirectoryCreateFailedError as e:
                _record(report, name, IssueKind.DIRECTORY_CREATE_FAILED, e.message)
                return
            report.directories.append(created)
            return

        info = self._handle.getinfo(name)
        if info is None:
            _record(report, name, IssueKind.IO_ERROR, f"Entry not found in archive: {name}")
            return

        dir_part, base_name = split_entry_name(name)
        try:
            target_dir = ensure_directory(destination.joinpath(*entry_parts(dir_part)))
        except DirectoryCreateFailedError as e:
            _record(report, name, IssueKind.DIRECTORY_CREATE_FAILED, e.message)
            return

        target = target_dir / base_name
        try:
            target.resolve().relative_to(destination.resolve())
        except ValueError:
            _record(
                report,
                name,
                IssueKind.UNSAFE_ENTRY,
                f"Entry escapes destination, skipped: {name}",
            )
            return
        if target.is_dir():
            _record(report, name, IssueKind.IO_ERROR, f"Target is a directory: {target}")
            return
        if target.exists() and not overwrite:
            _record(
                report,
                name,
                IssueKind.CONFLICT,
                f"Target file already exists, skipped: {target} (use force to overwrite)",
            )
            return

        started = False
        try:
            with (
                self._handle.open_entry(info) as src,
                open_write(target, overwrite=True, mkdir_parents=False) as dst,
            ):
                started = True
                written = copy_stream(src, dst)
        except (
            OSError,
            zipfile.BadZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
            RuntimeError,
            FileError,
        ) as e:
            # A half-written file is worse than none.
            if started:
                with contextlib.suppress(OSError):
                    target.unlink()
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            _record(report, name, IssueKind.IO_ERROR, f"Cannot extract {name}: {reason}")
            return

        mtime = time.mktime((*info.date_time, 0, 0, -1))
        with contextlib.suppress(OSError, OverflowError, ValueError):
            os.utime(target, (mtime, mtime))

        report.files.append(FileResult.from_path(target))
        log.verbose(f"archive.extract entry={name!r} bytes={written} path={str(target)!r}")
