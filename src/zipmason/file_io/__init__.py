"""Filesystem layer: path resolution, directory creation and ZIP archives."""

from .archives import ArchiveService, CompressionLevel
from .paths import resolve_archive_path, resolve_destination, resolve_sources
from .types import FileResult, FilesystemPath, PathKind

__all__ = [
    "ArchiveService",
    "CompressionLevel",
    "FileResult",
    "FilesystemPath",
    "PathKind",
    "resolve_archive_path",
    "resolve_destination",
    "resolve_sources",
]
