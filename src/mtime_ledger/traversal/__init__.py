"""Directory traversal producing ledger records."""

from .engine import DEFAULT_MAX_DEPTH, scan
from .fs import DirectoryEntry, FileSystem, OsFileSystem

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DirectoryEntry",
    "FileSystem",
    "OsFileSystem",
    "scan",
]
