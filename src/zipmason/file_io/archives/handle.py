"""Archive handle lifecycle.

An ArchiveHandle exclusively owns the file stream of one archive for its
lifetime: UNOPENED -> OPEN -> CLOSED. Use ``open_archive`` so the handle is
closed on every exit path.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
import zipfile
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from zipmason.core.errors import (
    ArchiveModeError,
    ArchiveNotFoundError,
    CorruptedFileError,
    FileError,
)
from zipmason.core.logging import get_logger

from ..ops import ensure_parent_dir
from ..streams import copy_stream
from .types import ArchiveMode, CompressionLevel, HandleState

log = get_logger(__name__)


def _copy_info(info: zipfile.ZipInfo) -> zipfile.ZipInfo:
    out = zipfile.ZipInfo(filename=info.filename, date_time=info.date_time)
    out.compress_type = info.compress_type
    out.comment = info.comment
    out.create_system = info.create_system
    out.external_attr = info.external_attr
    out.file_size = info.file_size
    return out


class ArchiveHandle:
    """One open ZIP archive bound to its backing file."""

    def __init__(self, path: Path, mode: ArchiveMode) -> None:
        self.path = path
        self.mode = mode
        self.state = HandleState.UNOPENED
        self._fp: BinaryIO | None = None
        self._zf: zipfile.ZipFile | None = None

    def __enter__(self) -> ArchiveHandle:
        if self.state == HandleState.UNOPENED:
            self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def writable(self) -> bool:
        return self.mode in (ArchiveMode.UPDATE, ArchiveMode.CREATE)

    def open(self) -> ArchiveHandle:
        if self.state != HandleState.UNOPENED:
            raise ArchiveModeError(f"Archive handle already {self.state.value}: {self.path}")

        if self.mode == ArchiveMode.READ:
            if not self.path.is_file():
                raise ArchiveNotFoundError(str(self.path))
            self._attach("rb", "r")
        elif self.mode == ArchiveMode.CREATE:
            ensure_parent_dir(self.path)
            self._attach("w+b", "w")
        elif self.path.is_file() and self.path.stat().st_size > 0:
            # Appending to a non-ZIP file would silently produce a hybrid file.
            if not zipfile.is_zipfile(self.path):
                raise CorruptedFileError(str(self.path))
            self._attach("r+b", "a")
        else:
            ensure_parent_dir(self.path)
            self._attach("w+b", "w")

        self.state = HandleState.OPEN
        log.debug(f"archive.open path={str(self.path)!r} mode={self.mode.value}")
        return self

    def _attach(self, file_mode: str, zip_mode: str) -> None:
        fp = open(self.path, file_mode)
        try:
            # Pre-1980 mtimes are clamped instead of failing the write.
            self._zf = zipfile.ZipFile(  # type: ignore[arg-type]
                fp, zip_mode, strict_timestamps=False
            )
        except zipfile.BadZipFile:
            fp.close()
            raise CorruptedFileError(str(self.path)) from None
        except BaseException:
            fp.close()
            raise
        self._fp = fp  # type: ignore[assignment]

    def close(self) -> None:
        """Flush pending writes and release the stream. Idempotent."""
        if self.state == HandleState.CLOSED:
            return
        if self.state == HandleState.UNOPENED:
            self.state = HandleState.CLOSED
            return

        self.state = HandleState.CLOSED
        try:
            if self._zf is not None:
                self._zf.close()
        finally:
            if self._fp is not None:
                self._fp.close()
            self._zf = None
            self._fp = None
        log.debug(f"archive.close path={str(self.path)!r} mode={self.mode.value}")

    def _require_open(self) -> zipfile.ZipFile:
        if self.state != HandleState.OPEN or self._zf is None:
            raise ArchiveModeError(f"Archive is not open: {self.path}")
        return self._zf

    def _require_writable(self) -> zipfile.ZipFile:
        zf = self._require_open()
        if not self.writable:
            raise ArchiveModeError(
                f"Archive opened read-only: {self.path}",
                "Open the archive in update or create mode to modify it",
            )
        return zf

    def infolist(self) -> list[zipfile.ZipInfo]:
        return self._require_open().infolist()

    def getinfo(self, name: str) -> zipfile.ZipInfo | None:
        zf = self._require_open()
        try:
            return zf.getinfo(name)
        except KeyError:
            return None

    def namelist(self) -> list[str]:
        return self._require_open().namelist()

    @contextmanager
    def open_entry(self, info: zipfile.ZipInfo) -> Iterator[BinaryIO]:
        zf = self._require_open()
        with zf.open(info, "r") as f:
            yield f  # type: ignore[misc]

    def write_file(
        self,
        source: Path,
        entry_name: str,
        compression: CompressionLevel = CompressionLevel.OPTIMAL,
    ) -> zipfile.ZipInfo:
        """Append ``source`` as a new entry. The name must not be present."""
        zf = self._require_writable()
        compress_type, level = compression.zip_settings
        zf.write(str(source), arcname=entry_name, compress_type=compress_type, compresslevel=level)
        return zf.getinfo(entry_name)

    def remove(self, name: str) -> bool:
        """Permanently drop entry ``name``.

        zipfile cannot delete in place: the archive is rewritten without the
        entry into a sibling temp file which then replaces the original.
        """
        zf = self._require_writable()
        if name not in zf.NameToInfo:
            return False

        zf.close()
        if self._fp is not None:
            self._fp.close()
        self._zf = None
        self._fp = None

        tmp_fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        tmp_path = Path(tmp_name)
        try:
            with (
                os.fdopen(tmp_fd, "w+b") as tmp_fp,
                zipfile.ZipFile(self.path, "r") as src,
                zipfile.ZipFile(tmp_fp, "w") as dst,
            ):
                dst.comment = src.comment
                for info in src.infolist():
                    if info.filename == name:
                        continue
                    force_zip64 = info.file_size > zipfile.ZIP64_LIMIT
                    with (
                        src.open(info, "r") as s,
                        dst.open(_copy_info(info), "w", force_zip64=force_zip64) as d,
                    ):
                        copy_stream(s, d)  # type: ignore[arg-type]
            # mkstemp creates 0600; keep the archive's own permissions.
            shutil.copymode(self.path, tmp_path)
            os.replace(tmp_path, self.path)
        except (
            OSError,
            zipfile.BadZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
            RuntimeError,
        ) as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            self._attach("r+b", "a")
            raise FileError(f"Failed to remove entry '{name}' from {self.path}: {e}") from e

        self._attach("r+b", "a")
        log.debug(f"archive.remove path={str(self.path)!r} entry={name!r}")
        return True

    def verify(self) -> list[str]:
        """Read every entry and return names whose data fails CRC/decompression."""
        bad: list[str] = []
        for info in self.infolist():
            if info.is_dir():
                continue
            try:
                with self.open_entry(info) as f:
                    while f.read(1024 * 1024):
                        pass
            except (
                zipfile.BadZipFile,
                zlib.error,
                EOFError,
                OSError,
                NotImplementedError,
                RuntimeError,
            ) as e:
                log.verbose(f"archive.verify bad entry={info.filename!r} error={e}")
                bad.append(info.filename)
        return bad


@contextmanager
def open_archive(path: Path, mode: ArchiveMode) -> Iterator[ArchiveHandle]:
    """Open an archive and guarantee it is closed, even on errors."""
    handle = ArchiveHandle(path, mode)
    handle.open()
    try:
        yield handle
    finally:
        handle.close()
