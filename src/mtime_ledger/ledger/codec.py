"""CSV wire format for the ledger file."""

from __future__ import annotations

import csv
import io
import os
from dataclasses import dataclass
from pathlib import Path

from mtime_ledger.ledger.models import FileRecord

LEDGER_HEADER = ("path", "modifiedTime")
DEFAULT_LEDGER_NAME = "metadata.csv"


class LedgerLoadError(Exception):
    """Raised when a ledger file is missing or cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class LedgerWriteError(Exception):
    """Raised when a ledger file cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(slots=True, frozen=True)
class LedgerRow:
    """Raw ledger row as stored on disk, before timestamp parsing."""

    line: int
    path: str
    modified_time: str


def read_ledger_rows(path: Path) -> list[LedgerRow]:
    """Read ledger rows in file order; duplicates are preserved."""
    try:
        raw = path.read_bytes()
    except FileNotFoundError as error:
        raise LedgerLoadError(path, "ledger file not found") from error
    except OSError as error:
        raise LedgerLoadError(path, f"cannot read ledger: {error.strerror or error}") from error
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as error:
        raise LedgerLoadError(path, "ledger is not valid UTF-8") from error

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    rows: list[LedgerRow] = []
    try:
        header = next(reader, None)
        if header is None:
            raise LedgerLoadError(path, "ledger is empty; expected a header row")
        if tuple(cell.strip() for cell in header) != LEDGER_HEADER:
            raise LedgerLoadError(path, f"unexpected header {header!r}")
        for row in reader:
            if not row or all(not cell.strip() for cell in row):
                continue
            if len(row) != len(LEDGER_HEADER):
                raise LedgerLoadError(
                    path, f"line {reader.line_num}: expected 2 columns, found {len(row)}"
                )
            rows.append(LedgerRow(line=reader.line_num, path=row[0], modified_time=row[1]))
    except csv.Error as error:
        raise LedgerLoadError(path, f"line {reader.line_num}: {error}") from error
    return rows


def render_ledger(records: list[FileRecord]) -> str:
    """Render records sorted by path under the fixed header."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(LEDGER_HEADER)
    for record in sorted(records, key=lambda item: item.path):
        writer.writerow((record.path, record.modified_time_text))
    return buffer.getvalue()


def write_ledger(path: Path, records: list[FileRecord]) -> None:
    """Write the ledger atomically via a sibling temp file."""
    payload = render_ledger(records)
    tmp = path.with_name(path.name + ".tmp")
    try:
        with tmp.open("w", encoding="utf-8", newline="") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        tmp.replace(path)
    except OSError as error:
        tmp.unlink(missing_ok=True)
        raise LedgerWriteError(path, f"cannot write ledger: {error.strerror or error}") from error
