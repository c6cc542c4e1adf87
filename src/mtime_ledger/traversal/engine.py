"""Depth-first traversal that snapshots file modification times."""

from __future__ import annotations

import time
from collections.abc import Callable, Collection
from dataclasses import dataclass
from pathlib import Path

from mtime_ledger.ledger.codec import DEFAULT_LEDGER_NAME
from mtime_ledger.ledger.models import (
    Diagnostic,
    DiagnosticKind,
    FileRecord,
    ScanProfile,
    ScanResult,
)
from mtime_ledger.ledger.timestamps import from_mtime_ns
from mtime_ledger.security.paths import validate_root
from mtime_ledger.traversal.fs import FileSystem, OsFileSystem

DEFAULT_MAX_DEPTH = 50
ROOT_LABEL = "."


@dataclass(slots=True, frozen=True)
class _Frame:
    """A directory waiting to be listed, with the lineage of its own branch."""

    path: Path
    relative: str
    depth: int
    lineage: frozenset[str]


class _Collector:
    """Mutable accumulators shared by one scan."""

    def __init__(self) -> None:
        self.records: list[FileRecord] = []
        self.diagnostics: list[Diagnostic] = []
        self.directories_scanned = 0
        self.skipped_existing = 0
        self.symlinks_skipped = 0
        self.other_entries_skipped = 0

    def report(self, kind: DiagnosticKind, path: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(kind=kind, path=path, message=message))


def scan(
    root: Path | str,
    skip_paths: Collection[str] | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    ledger_name: str = DEFAULT_LEDGER_NAME,
    filesystem: FileSystem | None = None,
    cancel_requested: Callable[[], bool] | None = None,
) -> ScanResult:
    """Walk root and return a record for every regular file plus diagnostics.

    Symbolic links are never recorded or followed. A directory whose
    canonical path already appears in its own ancestor chain is reported as
    a cycle; a directory deeper than ``max_depth`` is reported and skipped.
    Entries named ``ledger_name`` are skipped at every depth. Failures below
    the root become diagnostics and never abort the walk.
    """
    if max_depth < 0:
        raise ValueError("max_depth must be >= 0.")
    started = time.perf_counter()
    base = validate_root(root)
    fs = filesystem or OsFileSystem()
    skip = frozenset(skip_paths or ())
    collector = _Collector()

    try:
        root_canonical = fs.canonical(base)
    except OSError as error:
        collector.report(
            _error_kind(error), ROOT_LABEL, f"Cannot resolve scan root: {_describe(error)}"
        )
        return _finish(collector, started)

    stack: list[_Frame] = [
        _Frame(path=base, relative="", depth=0, lineage=frozenset({root_canonical}))
    ]
    while stack:
        if cancel_requested is not None and cancel_requested():
            collector.report(
                DiagnosticKind.CANCELLED,
                stack[-1].relative or ROOT_LABEL,
                f"Scan cancelled; {len(stack)} pending directories were not visited.",
            )
            break
        frame = stack.pop()
        children = _scan_directory(frame, fs, skip, ledger_name, max_depth, collector)
        stack.extend(reversed(children))

    return _finish(collector, started)


def _scan_directory(
    frame: _Frame,
    fs: FileSystem,
    skip: frozenset[str],
    ledger_name: str,
    max_depth: int,
    collector: _Collector,
) -> list[_Frame]:
    """Record files of one directory and return its descendable children in order."""
    label = frame.relative or ROOT_LABEL
    try:
        entries = fs.list_directory(frame.path)
    except OSError as error:
        collector.report(
            _error_kind(error), label, f"Cannot read directory '{label}': {_describe(error)}"
        )
        return []
    collector.directories_scanned += 1

    children: list[_Frame] = []
    for entry in entries:
        relative = f"{frame.relative}/{entry.name}" if frame.relative else entry.name
        if entry.kind == "symlink":
            collector.symlinks_skipped += 1
            continue
        if not _is_portable_name(entry.name):
            collector.report(
                DiagnosticKind.IO_ERROR,
                relative,
                f"Name of '{relative}' is not valid UTF-8 and cannot be stored in the ledger.",
            )
            continue
        if entry.name == ledger_name:
            continue
        if entry.kind == "directory":
            child = _enter_directory(frame, entry.path, relative, fs, max_depth, collector)
            if child is not None:
                children.append(child)
            continue
        if entry.kind != "file":
            collector.other_entries_skipped += 1
            continue
        if relative in skip:
            collector.skipped_existing += 1
            continue
        try:
            mtime_ns = fs.modified_ns(entry.path)
        except OSError as error:
            collector.report(
                _error_kind(error), relative, f"Cannot stat file '{relative}': {_describe(error)}"
            )
            continue
        try:
            modified_time = from_mtime_ns(mtime_ns)
        except (OverflowError, ValueError):
            collector.report(
                DiagnosticKind.IO_ERROR,
                relative,
                f"Modification time of '{relative}' is out of range: {mtime_ns} ns.",
            )
            continue
        collector.records.append(FileRecord(path=relative, modified_time=modified_time))
    return children


def _enter_directory(
    parent: _Frame,
    path: Path,
    relative: str,
    fs: FileSystem,
    max_depth: int,
    collector: _Collector,
) -> _Frame | None:
    """Apply depth and cycle guards before a child directory is descended."""
    depth = parent.depth + 1
    if depth > max_depth:
        collector.report(
            DiagnosticKind.DEPTH_EXCEEDED,
            relative,
            f"Directory '{relative}' exceeds the maximum depth of {max_depth} levels.",
        )
        return None
    try:
        canonical = fs.canonical(path)
    except OSError as error:
        collector.report(
            _error_kind(error),
            relative,
            f"Cannot resolve directory '{relative}': {_describe(error)}",
        )
        return None
    if canonical in parent.lineage:
        collector.report(
            DiagnosticKind.CYCLE,
            relative,
            f"Directory '{relative}' resolves to its own ancestor '{canonical}'.",
        )
        return None
    return _Frame(path=path, relative=relative, depth=depth, lineage=parent.lineage | {canonical})


def _finish(collector: _Collector, started: float) -> ScanResult:
    profile = ScanProfile(
        directories_scanned=collector.directories_scanned,
        files_recorded=len(collector.records),
        skipped_existing=collector.skipped_existing,
        symlinks_skipped=collector.symlinks_skipped,
        other_entries_skipped=collector.other_entries_skipped,
        total_seconds=time.perf_counter() - started,
    )
    records = sorted(collector.records, key=lambda item: item.path)
    return ScanResult(
        records=tuple(records), diagnostics=tuple(collector.diagnostics), profile=profile
    )


def _error_kind(error: OSError) -> DiagnosticKind:
    if isinstance(error, PermissionError):
        return DiagnosticKind.PERMISSION_DENIED
    return DiagnosticKind.IO_ERROR


def _describe(error: OSError) -> str:
    return error.strerror or str(error) or type(error).__name__


def _is_portable_name(name: str) -> bool:
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True
