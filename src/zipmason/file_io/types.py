"""Types for the file_io layer.

ASCII-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class PathKind(StrEnum):
    """What a resolved path points at."""

    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


@dataclass(frozen=True)
class FilesystemPath:
    """Absolute, resolved path plus its kind at resolution time."""

    path: Path
    kind: PathKind

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_dir(self) -> bool:
        return self.kind == PathKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind == PathKind.FILE


@dataclass(frozen=True)
class FileResult:
    """A file on disk produced by an operation."""

    path: Path
    size: int

    @classmethod
    def from_path(cls, path: Path) -> FileResult:
        return cls(path=path, size=int(path.stat().st_size))
