"""Filesystem provider consumed by the traversal engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol

EntryKind = Literal["file", "directory", "symlink", "other"]


@dataclass(slots=True, frozen=True)
class DirectoryEntry:
    """One listing entry, classified by its own link type."""

    name: str
    path: Path
    kind: EntryKind


class FileSystem(Protocol):
    """Listing, stat and canonical-path operations used by a scan."""

    def list_directory(self, path: Path) -> list[DirectoryEntry]: ...

    def modified_ns(self, path: Path) -> int: ...

    def canonical(self, path: Path) -> str: ...


class OsFileSystem:
    """FileSystem backed by os.scandir and os.stat."""

    def list_directory(self, path: Path) -> list[DirectoryEntry]:
        """List a directory in name order without following any link."""
        output: list[DirectoryEntry] = []
        with os.scandir(path) as entries:
            for entry in entries:
                output.append(
                    DirectoryEntry(name=entry.name, path=Path(entry.path), kind=_classify(entry))
                )
        output.sort(key=lambda item: item.name)
        return output

    def modified_ns(self, path: Path) -> int:
        return os.stat(path, follow_symlinks=False).st_mtime_ns

    def canonical(self, path: Path) -> str:
        return os.path.realpath(path, strict=True)


def _classify(entry: os.DirEntry[str]) -> EntryKind:
    if entry.is_symlink():
        return "symlink"
    if entry.is_dir(follow_symlinks=False):
        return "directory"
    if entry.is_file(follow_symlinks=False):
        return "file"
    return "other"
