"""ZIP archive support for file_io."""

from .engine import ArchiveMutationEngine
from .handle import ArchiveHandle, open_archive
from .index import EntryIndex
from .service import ArchiveService
from .types import (
    AddedEntry,
    AddReport,
    ArchiveEntry,
    ArchiveMode,
    ArchiveResult,
    CompressionLevel,
    ExtractReport,
    HandleState,
    IssueKind,
    ItemIssue,
)

__all__ = [
    "AddReport",
    "AddedEntry",
    "ArchiveEntry",
    "ArchiveHandle",
    "ArchiveMode",
    "ArchiveMutationEngine",
    "ArchiveResult",
    "ArchiveService",
    "CompressionLevel",
    "EntryIndex",
    "ExtractReport",
    "HandleState",
    "IssueKind",
    "ItemIssue",
    "open_archive",
]
