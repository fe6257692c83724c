"""Archive capability types for file_io.

Entry names and messages are ASCII-safe in logs.
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from ..types import FileResult


class ArchiveMode(StrEnum):
    READ = "read"
    UPDATE = "update"
    CREATE = "create"


class HandleState(StrEnum):
    UNOPENED = "unopened"
    OPEN = "open"
    CLOSED = "closed"


class CompressionLevel(StrEnum):
    OPTIMAL = "optimal"
    FASTEST = "fastest"
    NO_COMPRESSION = "no_compression"

    @property
    def zip_settings(self) -> tuple[int, int | None]:
        """(compress_type, compresslevel) for zipfile writes."""
        if self is CompressionLevel.NO_COMPRESSION:
            return zipfile.ZIP_STORED, None
        if self is CompressionLevel.FASTEST:
            return zipfile.ZIP_DEFLATED, 1
        return zipfile.ZIP_DEFLATED, 6


class IssueKind(StrEnum):
    CONFLICT = "conflict"
    DIRECTORY_CREATE_FAILED = "directory_create_failed"
    IO_ERROR = "io_error"
    UNSAFE_ENTRY = "unsafe_entry"
    INVALID_ENTRY_NAME = "invalid_entry_name"


@dataclass(frozen=True)
class ArchiveEntry:
    """Detached description of one entry of an archive."""

    archive_path: Path
    name: str
    compressed_size: int
    size: int
    is_dir: bool

    @classmethod
    def from_info(cls, archive_path: Path, info: zipfile.ZipInfo) -> ArchiveEntry:
        return cls(
            archive_path=archive_path,
            name=info.filename,
            compressed_size=int(info.compress_size),
            size=int(info.file_size),
            is_dir=info.filename.endswith(("/", "\\")),
        )


@dataclass(frozen=True)
class AddedEntry:
    source_path: Path
    entry_name: str
    size: int
    replaced: bool


@dataclass(frozen=True)
class ItemIssue:
    """A per-item problem that did not stop the batch."""

    item: str
    kind: IssueKind
    message: str


@dataclass
class AddReport:
    added: list[AddedEntry] = field(default_factory=list)
    issues: list[ItemIssue] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.kind == IssueKind.CONFLICT]

    @property
    def errors(self) -> list[str]:
        return [i.message for i in self.issues if i.kind != IssueKind.CONFLICT]

    @property
    def skipped(self) -> list[str]:
        return [i.item for i in self.issues if i.kind == IssueKind.CONFLICT]


@dataclass
class ExtractReport:
    files: list[FileResult] = field(default_factory=list)
    directories: list[Path] = field(default_factory=list)
    issues: list[ItemIssue] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.kind == IssueKind.CONFLICT]

    @property
    def errors(self) -> list[str]:
        return [i.message for i in self.issues if i.kind != IssueKind.CONFLICT]

    @property
    def skipped(self) -> list[str]:
        return [i.item for i in self.issues if i.kind == IssueKind.CONFLICT]

    def merge(self, other: ExtractReport) -> None:
        self.files.extend(other.files)
        self.directories.extend(other.directories)
        self.issues.extend(other.issues)


@dataclass(frozen=True)
class ArchiveResult:
    archive: FileResult
    entries_added: int
    report: AddReport
