"""Ledger data model, wire format and persistence."""

from .codec import (
    DEFAULT_LEDGER_NAME,
    LEDGER_HEADER,
    LedgerLoadError,
    LedgerRow,
    LedgerWriteError,
    read_ledger_rows,
    render_ledger,
    write_ledger,
)
from .models import (
    Diagnostic,
    DiagnosticKind,
    FileRecord,
    LedgerStatus,
    RestoreOutcome,
    RestoreWarning,
    ScanProfile,
    ScanReport,
    ScanResult,
)
from .store import Ledger, MergePolicy
from .timestamps import format_instant, from_mtime_ns, parse_instant, to_ns

__all__ = [
    "DEFAULT_LEDGER_NAME",
    "Diagnostic",
    "DiagnosticKind",
    "FileRecord",
    "LEDGER_HEADER",
    "Ledger",
    "LedgerLoadError",
    "LedgerRow",
    "LedgerStatus",
    "LedgerWriteError",
    "MergePolicy",
    "RestoreOutcome",
    "RestoreWarning",
    "ScanProfile",
    "ScanReport",
    "ScanResult",
    "format_instant",
    "from_mtime_ns",
    "parse_instant",
    "read_ledger_rows",
    "render_ledger",
    "to_ns",
    "write_ledger",
]
