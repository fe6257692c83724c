"""Streaming helpers for file_io."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from zipmason.core.errors import FileError

from .ops import ensure_parent_dir

COPY_CHUNK_SIZE = 1024 * 1024


@contextmanager
def open_write(
    path: Path, *, overwrite: bool = False, mkdir_parents: bool = True
) -> Iterator[BinaryIO]:
    """Open a file for writing in binary mode (create or truncate)."""
    if path.exists() and not overwrite:
        raise FileError(f"Destination exists: {path}")

    if mkdir_parents:
        ensure_parent_dir(path)

    with open(path, "wb") as f:
        yield f


def copy_stream(src: BinaryIO, dst: BinaryIO, *, chunk_size: int = COPY_CHUNK_SIZE) -> int:
    """Copy src to dst in chunks and return the number of bytes written."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    total = 0
    while True:
        chunk = src.read(chunk_size)
        if not chunk:
            break
        dst.write(chunk)
        total += len(chunk)
    return total
