"""Filesystem operations for file_io."""

from __future__ import annotations

from pathlib import Path

from zipmason.core.errors import DirectoryCreateFailedError
from zipmason.core.logging import get_logger

_logger = get_logger(__name__)


def ensure_directory(path: Path) -> Path:
    """Make sure ``path`` exists as a directory, creating missing ancestors.

    Returns:
        The directory path.

    Raises:
        DirectoryCreateFailedError: path (or an ancestor) is a non-directory,
            or the filesystem refused the creation.
    """
    if path.is_dir():
        return path
    if path.exists():
        raise DirectoryCreateFailedError(str(path), "exists and is not a directory")

    try:
        path.mkdir(parents=True, exist_ok=True)
    except FileExistsError:
        raise DirectoryCreateFailedError(
            str(path), "an ancestor exists and is not a directory"
        ) from None
    except NotADirectoryError:
        raise DirectoryCreateFailedError(
            str(path), "an ancestor exists and is not a directory"
        ) from None
    except OSError as e:
        raise DirectoryCreateFailedError(str(path), e.strerror or str(e)) from e

    _logger.debug(f"file_io.mkdir path={str(path)!r}")
    return path


def ensure_parent_dir(path: Path) -> Path:
    return ensure_directory(path.parent)
