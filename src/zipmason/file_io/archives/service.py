"""Archive capability service.

Top-level create / add / list / expand operations. Each operation validates
its paths first, then owns exactly one open ArchiveHandle at a time and
closes it before returning or raising.
"""

from __future__ import annotations

import fnmatch
import time
import traceback
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from zipmason.core.config import ConfigResolver
from zipmason.core.diagnostics import build_envelope
from zipmason.core.errors import ArchiveNotFoundError, ConfigError, PathNotFoundError
from zipmason.core.events import get_event_bus
from zipmason.core.logging import get_logger

from ..ops import ensure_directory
from ..paths import resolve_archive_path, resolve_destination, resolve_sources
from ..types import FileResult
from .engine import ArchiveMutationEngine
from .handle import open_archive
from .index import EntryIndex
from .types import (
    AddReport,
    ArchiveEntry,
    ArchiveMode,
    ArchiveResult,
    CompressionLevel,
    ExtractReport,
)

log = get_logger(__name__)


def _short_traceback(*, max_lines: int = 20) -> str:
    tb_lines = traceback.format_exc().strip().splitlines()
    return "\n".join(tb_lines[-max_lines:])


def _safe_publish(event: str, payload: dict[str, Any]) -> None:
    try:
        get_event_bus().publish(event, payload)
    except Exception:
        # Diagnostics emission must never crash processing.
        return


@contextmanager
def _observe_operation(*, operation: str, base: dict[str, Any]) -> Iterator[dict[str, Any]]:
    start = time.perf_counter()

    _safe_publish(
        "operation.start",
        build_envelope(
            event="operation.start", component="archive", operation=operation, data=dict(base)
        ),
    )

    summary: dict[str, Any] = {}
    try:
        yield summary
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        end_data = dict(base)
        end_data.update(
            {
                "status": "failed",
                "duration_ms": duration_ms,
                "error_type": type(e).__name__,
                "error_message": str(e),
                "traceback": _short_traceback(),
            }
        )
        _safe_publish(
            "operation.end",
            build_envelope(
                event="operation.end", component="archive", operation=operation, data=end_data
            ),
        )
        log.debug(
            f"{operation} status=failed duration_ms={duration_ms} "
            f"error_type={type(e).__name__!r}"
        )
        raise
    else:
        duration_ms = int((time.perf_counter() - start) * 1000)
        end_data = dict(base)
        end_data.update(summary)
        end_data.update({"status": "succeeded", "duration_ms": duration_ms})
        _safe_publish(
            "operation.end",
            build_envelope(
                event="operation.end", component="archive", operation=operation, data=end_data
            ),
        )
        # Summary logs are emitted on end only to avoid spam.
        parts = ["status=succeeded", f"duration_ms={duration_ms}"]
        for k in (
            "archive",
            "destination",
            "files_count",
            "entries_count",
            "skipped_count",
            "errors_count",
            "bytes",
        ):
            if k in end_data:
                parts.append(f"{k}={end_data[k]!r}")
        log.info(f"{operation} " + " ".join(parts))


def _filter_entries(entries: list[ArchiveEntry], include: str | None) -> list[ArchiveEntry]:
    if not include:
        return entries
    return [e for e in entries if fnmatch.fnmatchcase(e.name, include)]


def _as_list(value: str | Iterable[str]) -> list[str]:
    if isinstance(value, (str, Path)):
        return [str(value)]
    return [str(v) for v in value]


class ArchiveService:
    """Archive operations.

    Defaults for ``compression`` and ``force`` come from configuration
    (archives.compression, archives.force) when the caller passes None.
    """

    def __init__(self, resolver: ConfigResolver | None = None) -> None:
        self._resolver = resolver or ConfigResolver(cli_args={})

    def _compression(self, value: CompressionLevel | str | None) -> CompressionLevel:
        if value is None:
            try:
                value, _src = self._resolver.resolve("archives.compression")
            except ConfigError:
                return CompressionLevel.OPTIMAL
        norm = str(value).strip().lower().replace("-", "_")
        try:
            return CompressionLevel(norm)
        except ValueError:
            allowed = ", ".join(c.value for c in CompressionLevel)
            raise ConfigError(
                f"Invalid compression level: {value!r}. Allowed values: {allowed}"
            ) from None

    def _force(self, value: bool | None) -> bool:
        if value is not None:
            return bool(value)
        return self._resolver.resolve_bool("archives.force", False)

    def create_archive(
        self,
        sources: str | Iterable[str],
        destination: str,
        *,
        literal: bool = False,
        compression: CompressionLevel | str | None = None,
        force: bool | None = None,
        no_clobber: bool = False,
    ) -> ArchiveResult:
        """Build an archive from files and directory trees.

        The destination is recreated unless ``no_clobber`` is set and it
        already exists, in which case it is updated in place.

        Raises:
            InvalidDestinationError, PathNotFoundError
        """
        source_list = _as_list(sources)
        base = {"destination": destination, "sources_count": len(source_list)}
        with _observe_operation(operation="archive.create", base=base) as summary:
            dest = resolve_archive_path(destination, literal=literal)
            items = resolve_sources(source_list, literal=literal)
            level = self._compression(compression)
            overwrite = self._force(force)

            mode = ArchiveMode.UPDATE if no_clobber and dest.exists() else ArchiveMode.CREATE
            summary["mode"] = mode.value
            with open_archive(dest, mode) as handle:
                engine = ArchiveMutationEngine(handle, compression=level)
                report = engine.add_paths(items, overwrite=overwrite)

            archive = FileResult.from_path(dest)
            summary.update(
                {
                    "files_count": len(report.added),
                    "skipped_count": len(report.skipped),
                    "errors_count": len(report.errors),
                    "bytes": archive.size,
                }
            )
            return ArchiveResult(archive=archive, entries_added=len(report.added), report=report)

    def add_to_archive(
        self,
        sources: str | Iterable[str],
        destination: str,
        *,
        literal: bool = False,
        compression: CompressionLevel | str | None = None,
        force: bool | None = None,
    ) -> AddReport:
        """Add files and directory trees to an existing (or new) archive.

        Existing entries are kept; a name clash is skipped unless ``force``.
        """
        source_list = _as_list(sources)
        base = {"destination": destination, "sources_count": len(source_list)}
        with _observe_operation(operation="archive.add", base=base) as summary:
            dest = resolve_archive_path(destination, literal=literal)
            items = resolve_sources(source_list, literal=literal)
            level = self._compression(compression)
            overwrite = self._force(force)

            with open_archive(dest, ArchiveMode.UPDATE) as handle:
                engine = ArchiveMutationEngine(handle, compression=level)
                report = engine.add_paths(items, overwrite=overwrite)

            summary.update(
                {
                    "files_count": len(report.added),
                    "skipped_count": len(report.skipped),
                    "errors_count": len(report.errors),
                    "bytes": dest.stat().st_size,
                }
            )
            return report

    def _resolve_archives(self, archives: str | Iterable[str], *, literal: bool) -> list[Path]:
        try:
            items = resolve_sources(_as_list(archives), literal=literal)
        except PathNotFoundError as e:
            raise ArchiveNotFoundError(e.path) from None
        out: list[Path] = []
        for item in items:
            if item.is_dir:
                raise ArchiveNotFoundError(str(item.path))
            out.append(item.path)
        return out

    def list_entries(
        self,
        archives: str | Iterable[str],
        *,
        literal: bool = False,
        include: str | None = None,
    ) -> list[ArchiveEntry]:
        """List entries of one or more archives, in archive order.

        ``include`` is an optional fnmatch pattern on entry names.
        """
        archive_list = _as_list(archives)
        base = {"archives_count": len(archive_list), "include": include}
        with _observe_operation(operation="archive.list", base=base) as summary:
            entries: list[ArchiveEntry] = []
            for path in self._resolve_archives(archive_list, literal=literal):
                with open_archive(path, ArchiveMode.READ) as handle:
                    entries.extend(_filter_entries(EntryIndex(handle).entries(), include))
            summary["entries_count"] = len(entries)
            return entries

    def expand_archive(
        self,
        archive: str,
        destination: str,
        *,
        literal: bool = False,
        force: bool | None = None,
        include: str | None = None,
    ) -> ExtractReport:
        """Extract all entries (or those matching ``include``) below destination.

        The destination directory is created if absent.
        """
        base = {"archive": archive, "destination": destination, "include": include}
        with _observe_operation(operation="archive.expand", base=base) as summary:
            src = resolve_destination(archive, literal=literal)
            dst = resolve_destination(destination, literal=literal)
            overwrite = self._force(force)

            with open_archive(src, ArchiveMode.READ) as handle:
                ensure_directory(dst)
                engine = ArchiveMutationEngine(handle)
                entries = _filter_entries(engine.index.entries(), include)
                report = engine.extract_entries(entries, dst, overwrite=overwrite)

            summary.update(
                {
                    "files_count": len(report.files),
                    "skipped_count": len(report.skipped),
                    "errors_count": len(report.errors),
                }
            )
            return report

    def expand_entries(
        self,
        entries: Iterable[ArchiveEntry],
        destination: str,
        *,
        literal: bool = False,
        force: bool | None = None,
    ) -> ExtractReport:
        """Extract selected entries, typically taken from ``list_entries``.

        Entries are grouped per archive; each archive is opened once.
        """
        groups: dict[Path, list[ArchiveEntry]] = {}
        for entry in entries:
            groups.setdefault(entry.archive_path, []).append(entry)

        base = {"destination": destination, "archives_count": len(groups)}
        with _observe_operation(operation="archive.expand_entries", base=base) as summary:
            dst = resolve_destination(destination, literal=literal)
            overwrite = self._force(force)
            ensure_directory(dst)

            report = ExtractReport()
            for archive_path, group in groups.items():
                with open_archive(archive_path, ArchiveMode.READ) as handle:
                    engine = ArchiveMutationEngine(handle)
                    report.merge(engine.extract_entries(group, dst, overwrite=overwrite))

            summary.update(
                {
                    "files_count": len(report.files),
                    "skipped_count": len(report.skipped),
                    "errors_count": len(report.errors),
                }
            )
            return report

    def test_archive(self, archive: str, *, literal: bool = False) -> list[str]:
        """Check every entry's data; return the names of damaged entries."""
        base = {"archive": archive}
        with _observe_operation(operation="archive.test", base=base) as summary:
            src = resolve_destination(archive, literal=literal)
            with open_archive(src, ArchiveMode.READ) as handle:
                bad = handle.verify()
                summary["entries_count"] = len(handle.infolist())
            summary["errors_count"] = len(bad)
            return bad
