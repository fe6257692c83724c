"""Entry lookups on an open archive."""

from __future__ import annotations

from zipmason.core.logging import get_logger

from .handle import ArchiveHandle
from .types import ArchiveEntry

log = get_logger(__name__)


class EntryIndex:
    """Name -> entry view over an open ArchiveHandle.

    The index never caches: every call reflects the handle's current state,
    including entries written earlier in the same operation.
    """

    def __init__(self, handle: ArchiveHandle) -> None:
        self._handle = handle

    def exists(self, name: str) -> bool:
        return self._handle.getinfo(name) is not None

    def get(self, name: str) -> ArchiveEntry | None:
        info = self._handle.getinfo(name)
        if info is None:
            return None
        return ArchiveEntry.from_info(self._handle.path, info)

    def names(self) -> list[str]:
        return self._handle.namelist()

    def entries(self) -> list[ArchiveEntry]:
        return [ArchiveEntry.from_info(self._handle.path, i) for i in self._handle.infolist()]

    def delete_if_exists(self, name: str) -> bool:
        """Remove entry ``name`` if present; return whether anything was removed.

        Must precede re-adding a name: entries cannot be overwritten in place.
        """
        deleted = self._handle.remove(name)
        if deleted:
            log.verbose(f"archive.delete entry={name!r}")
        return deleted
