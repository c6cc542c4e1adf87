"""In-memory ledger table and its two merge policies."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from mtime_ledger.ledger.codec import LedgerLoadError, read_ledger_rows, write_ledger
from mtime_ledger.ledger.models import FileRecord
from mtime_ledger.ledger.timestamps import parse_instant


class MergePolicy(str, Enum):
    """How a fresh traversal combines with a prior ledger."""

    REPLACE = "replace"
    APPEND_ONLY = "append_only"


class Ledger:
    """Path -> modification-time table with unique paths."""

    def __init__(self, records: Iterable[FileRecord] = ()) -> None:
        self._records: dict[str, FileRecord] = {}
        for record in records:
            self._records[record.path] = record

    def __len__(self) -> int:
        return len(self._records)

    def paths(self) -> frozenset[str]:
        """Return every path currently in the ledger."""
        return frozenset(self._records)

    def records(self) -> list[FileRecord]:
        """Return records in serialization order."""
        return sorted(self._records.values(), key=lambda item: item.path)

    def replace(self, records: Iterable[FileRecord]) -> None:
        """Discard all entries and adopt exactly the given records."""
        self._records = {record.path: record for record in records}

    def merge_append_only(self, records: Iterable[FileRecord]) -> int:
        """Add records for unseen paths; existing entries are never touched."""
        added = 0
        for record in records:
            if record.path in self._records:
                continue
            self._records[record.path] = record
            added += 1
        return added

    def merge(self, records: Iterable[FileRecord], policy: MergePolicy) -> int:
        """Apply a merge policy and return how many paths are new."""
        if policy is MergePolicy.APPEND_ONLY:
            return self.merge_append_only(records)
        incoming = list(records)
        previous = self.paths()
        self.replace(incoming)
        return sum(1 for record in incoming if record.path not in previous)

    def write(self, path: Path) -> None:
        """Persist the ledger sorted by path."""
        write_ledger(path, self.records())

    @classmethod
    def load(cls, path: Path) -> Ledger:
        """Load a ledger, raising LedgerLoadError on any defect."""
        records: list[FileRecord] = []
        for row in read_ledger_rows(path):
            try:
                records.append(
                    FileRecord(path=row.path, modified_time=parse_instant(row.modified_time))
                )
            except ValueError as error:
                raise LedgerLoadError(path, f"line {row.line}: {error}") from error
        return cls(records)

    @classmethod
    def load_or_empty(cls, path: Path) -> Ledger:
        """Load a ledger, treating a missing or corrupt file as empty."""
        try:
            return cls.load(path)
        except LedgerLoadError:
            return cls()
