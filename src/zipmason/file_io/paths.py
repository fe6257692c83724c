"""Path normalization and resolution for file_io.

User input may be relative, carry a provider prefix (``FileSystem::``) or
contain wildcards. Everything is turned into absolute paths here; nothing
on disk is modified.
"""

from __future__ import annotations

import glob
import os
from collections.abc import Iterable
from pathlib import Path

from zipmason.core.errors import InvalidDestinationError, PathNotFoundError
from zipmason.core.logging import get_logger

from .types import FilesystemPath, PathKind

_logger = get_logger(__name__)

_PROVIDER_PREFIXES = (
    "Microsoft.PowerShell.Core\\FileSystem::",
    "FileSystem::",
)


def strip_provider_prefix(raw: str) -> str:
    for prefix in _PROVIDER_PREFIXES:
        if raw.startswith(prefix):
            return raw[len(prefix) :]
    return raw


def _absolute(raw: str) -> Path:
    # os.path.abspath normalizes '..' without resolving symlinks.
    return Path(os.path.abspath(os.path.expanduser(strip_provider_prefix(raw))))


def classify(path: Path) -> FilesystemPath:
    """Classify an absolute path as file, directory or missing."""
    if path.is_dir():
        return FilesystemPath(path=path, kind=PathKind.DIRECTORY)
    if path.exists():
        return FilesystemPath(path=path, kind=PathKind.FILE)
    return FilesystemPath(path=path, kind=PathKind.MISSING)


def resolve_sources(paths: Iterable[str], *, literal: bool = False) -> list[FilesystemPath]:
    """Resolve user-supplied source paths.

    Unless ``literal`` is set, inputs containing wildcards are expanded
    (sorted). Duplicates are dropped, first occurrence wins.

    Raises:
        PathNotFoundError: a path does not exist or a pattern matches nothing
    """
    resolved: list[FilesystemPath] = []
    seen: set[Path] = set()

    for raw in paths:
        if raw is None or str(raw).strip() == "":
            raise PathNotFoundError(str(raw))
        raw = str(raw)

        if not literal and glob.has_magic(raw):
            pattern = str(_absolute(raw))
            matches = sorted(glob.glob(pattern))
            if not matches:
                raise PathNotFoundError(raw)
            candidates = [Path(m) for m in matches]
        else:
            candidates = [_absolute(raw)]

        for candidate in candidates:
            item = classify(candidate)
            if item.kind == PathKind.MISSING:
                raise PathNotFoundError(raw)
            if item.path in seen:
                continue
            seen.add(item.path)
            resolved.append(item)

    _logger.debug(f"file_io.resolve_sources count={len(resolved)} literal={literal}")
    return resolved


def resolve_destination(path: str, *, literal: bool = False) -> Path:
    """Validate and resolve a destination path.

    Raises:
        InvalidDestinationError
    """
    if path is None or str(path).strip() == "":
        raise InvalidDestinationError(str(path), "path is empty")
    raw = str(path)
    if "\x00" in raw:
        raise InvalidDestinationError(raw.replace("\x00", "\\0"), "path contains a NUL byte")
    if not literal and glob.has_magic(strip_provider_prefix(raw)):
        raise InvalidDestinationError(raw, "wildcards are not allowed in a destination")
    return _absolute(raw)


def resolve_archive_path(path: str, *, literal: bool = False) -> Path:
    """Resolve the path of an archive file to write or read.

    Raises:
        InvalidDestinationError: invalid syntax or an existing directory
    """
    abs_path = resolve_destination(path, literal=literal)
    if abs_path.is_dir():
        raise InvalidDestinationError(str(path), "path is an existing directory")
    return abs_path
