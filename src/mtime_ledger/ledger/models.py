"""Typed models for ledger, traversal and restore results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from mtime_ledger.ledger.timestamps import format_instant, truncate_to_millis


@dataclass(slots=True, frozen=True)
class FileRecord:
    """One ledger row: a root-relative path and its modification instant."""

    path: str
    modified_time: datetime

    def __post_init__(self) -> None:
        if not self.path or self.path.startswith("/"):
            raise ValueError(f"Ledger path must be root-relative: {self.path!r}")
        if ".." in self.path.split("/"):
            raise ValueError(f"Ledger path must not contain '..': {self.path!r}")
        if self.modified_time.tzinfo is None:
            raise ValueError(f"Ledger timestamp for {self.path!r} must be timezone-aware.")
        object.__setattr__(self, "modified_time", truncate_to_millis(self.modified_time))

    @property
    def modified_time_text(self) -> str:
        """Return the wire form of the modification time."""
        return format_instant(self.modified_time)


class DiagnosticKind(str, Enum):
    """Non-fatal conditions reported by a traversal."""

    CYCLE = "Cycle"
    DEPTH_EXCEEDED = "DepthExceeded"
    PERMISSION_DENIED = "PermissionDenied"
    IO_ERROR = "IOError"
    CANCELLED = "Cancelled"


_DIAGNOSTIC_HINTS: dict[DiagnosticKind, str] = {
    DiagnosticKind.CYCLE: "Remove the looping link or junction, or point it elsewhere.",
    DiagnosticKind.DEPTH_EXCEEDED: (
        "Look for links that recreate parent folders, or raise scan.max_depth."
    ),
    DiagnosticKind.PERMISSION_DENIED: "Check ownership and read permissions on the path.",
    DiagnosticKind.IO_ERROR: "Check that the path still exists and the disk is healthy.",
    DiagnosticKind.CANCELLED: "Run the scan again to cover the remaining directories.",
}


@dataclass(slots=True, frozen=True)
class Diagnostic:
    """Per-path traversal problem; produced, never raised."""

    kind: DiagnosticKind
    path: str
    message: str

    @property
    def hint(self) -> str:
        """Return a remediation suggestion for this kind of problem."""
        return _DIAGNOSTIC_HINTS[self.kind]


@dataclass(slots=True, frozen=True)
class ScanProfile:
    """Deterministic counters for one traversal."""

    directories_scanned: int
    files_recorded: int
    skipped_existing: int
    symlinks_skipped: int
    other_entries_skipped: int
    total_seconds: float


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Records and diagnostics produced by one traversal."""

    records: tuple[FileRecord, ...]
    diagnostics: tuple[Diagnostic, ...]
    profile: ScanProfile


@dataclass(slots=True, frozen=True)
class RestoreWarning:
    """A ledger row that could not be applied, or a note about one."""

    path: str
    message: str


@dataclass(slots=True, frozen=True)
class RestoreOutcome:
    """Summary of one restore run."""

    restored_count: int
    warnings: tuple[RestoreWarning, ...] = ()
    notes: tuple[RestoreWarning, ...] = ()
    birth_time_supported: bool = False


@dataclass(slots=True, frozen=True)
class LedgerStatus:
    """Current ledger status for a root."""

    ledger_path: str
    exists: bool
    entry_count: int
    readable: bool = True
    problem: str | None = None


@dataclass(slots=True, frozen=True)
class ScanReport:
    """Outcome of one scan and its ledger write."""

    ledger_path: str
    append_only: bool
    entry_count: int
    added_count: int
    persisted: bool = True
    diagnostics: tuple[Diagnostic, ...] = ()
    profile: ScanProfile | None = None
    diagnostic_counts: dict[str, int] = field(default_factory=dict)
