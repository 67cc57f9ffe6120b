"""Filesystem access used by the scanner and detector."""

from __future__ import annotations

import os
import stat as stat_module
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class EntryKind(StrEnum):
    """Kind of directory entry, after following symlinks."""

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True)
class FileStat:
    kind: EntryKind
    size: int
    # (st_dev, st_ino) of the resolved entry; None when the backend has no such notion
    identity: tuple[int, int] | None = None


class FileSystem(Protocol):
    """Blocking filesystem operations. Callers move them off the event loop."""

    def list_dir(self, path: str) -> list[str]: ...

    def stat(self, path: str) -> FileStat: ...

    def read_text(self, path: str) -> str: ...

    def exists(self, path: str) -> bool: ...


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def list_dir(self, path: str) -> list[str]:
        # Sorted so traversal order doesn't depend on the platform
        return sorted(os.listdir(path))

    def stat(self, path: str) -> FileStat:
        result = os.stat(path)
        if stat_module.S_ISDIR(result.st_mode):
            kind = EntryKind.DIRECTORY
        elif stat_module.S_ISREG(result.st_mode):
            kind = EntryKind.FILE
        else:
            kind = EntryKind.OTHER
        return FileStat(kind=kind, size=result.st_size, identity=(result.st_dev, result.st_ino))

    def read_text(self, path: str) -> str:
        with open(path, encoding="utf-8") as f:
            return f.read()

    def exists(self, path: str) -> bool:
        return os.path.exists(path)
