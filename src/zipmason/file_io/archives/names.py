"""Archive entry naming.

Entry names are always written with '/' separators. When reading, both '/'
and '\\' (legacy archives) are accepted as separators.
"""

from __future__ import annotations

import os
import re

from zipmason.core.errors import InvalidEntryNameError

ENTRY_SEP = "/"

_READ_SEPARATORS = re.compile(r"[/\\]")


def _to_entry_sep(value: str) -> str:
    value = value.replace(os.sep, ENTRY_SEP)
    if os.altsep:
        value = value.replace(os.altsep, ENTRY_SEP)
    return value.strip(ENTRY_SEP)


def map_entry_name(name: str, base: str = "") -> str:
    """Compute the in-archive name of ``name`` under the ``base`` context.

    Raises:
        InvalidEntryNameError: the result is empty
    """
    leaf = _to_entry_sep(name)
    prefix = _to_entry_sep(base)
    entry = f"{prefix}{ENTRY_SEP}{leaf}" if prefix and leaf else leaf
    if not entry:
        raise InvalidEntryNameError(f"Empty entry name for {name!r} (base={base!r})")
    return entry


def child_base(base: str, dir_name: str) -> str:
    """Base context for the children of ``dir_name`` recursed from ``base``."""
    leaf = _to_entry_sep(dir_name)
    prefix = _to_entry_sep(base)
    if not prefix:
        return leaf
    if not leaf:
        return prefix
    return f"{prefix}{ENTRY_SEP}{leaf}"


def split_entry_name(name: str) -> tuple[str, str]:
    """Split an entry name into (directory portion, base name).

    The directory portion has no trailing separator. A directory placeholder
    ('docs/') has an empty base name.
    """
    idx = max(name.rfind("/"), name.rfind("\\"))
    if idx < 0:
        return "", name
    return name[:idx], name[idx + 1 :]


def is_directory_entry(name: str) -> bool:
    return split_entry_name(name)[1] == ""


def entry_parts(name: str) -> list[str]:
    """Non-empty path segments of an entry name."""
    return [p for p in _READ_SEPARATORS.split(name) if p]
