"""Ledger ownership for one root: scan, persist, inspect and restore."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from pathlib import Path

from mtime_ledger.config import LedgerConfig
from mtime_ledger.ledger.codec import LedgerLoadError
from mtime_ledger.ledger.models import (
    DiagnosticKind,
    FileRecord,
    LedgerStatus,
    RestoreOutcome,
    ScanReport,
)
from mtime_ledger.ledger.store import Ledger, MergePolicy
from mtime_ledger.restore.engine import restore_timestamps
from mtime_ledger.restore.timesetter import TimestampSetter
from mtime_ledger.traversal.engine import scan
from mtime_ledger.traversal.fs import FileSystem


class LedgerManager:
    """Owns the ledger file of a single root across repeated invocations."""

    def __init__(
        self,
        config: LedgerConfig,
        filesystem: FileSystem | None = None,
        setter: TimestampSetter | None = None,
    ) -> None:
        self._config = config
        self._root = config.root
        self._ledger_path = config.ledger_path
        self._filesystem = filesystem
        self._setter = setter
        self._data_dir_prefix = self._compute_data_dir_prefix()

    @property
    def ledger_path(self) -> Path:
        return self._ledger_path

    def has_ledger(self) -> bool:
        """Return True when the ledger file exists under the root."""
        return self._ledger_path.is_file()

    def load(self) -> Ledger:
        """Load the current ledger strictly."""
        return Ledger.load(self._ledger_path)

    def status(self) -> LedgerStatus:
        """Return status derived from the ledger file, if present."""
        if not self.has_ledger():
            return LedgerStatus(ledger_path=str(self._ledger_path), exists=False, entry_count=0)
        try:
            ledger = self.load()
        except LedgerLoadError as error:
            return LedgerStatus(
                ledger_path=str(self._ledger_path),
                exists=True,
                entry_count=0,
                readable=False,
                problem=error.reason,
            )
        return LedgerStatus(
            ledger_path=str(self._ledger_path), exists=True, entry_count=len(ledger)
        )

    def scan(
        self,
        append_only: bool = False,
        cancel_requested: Callable[[], bool] | None = None,
    ) -> ScanReport:
        """Traverse the root and persist the merged ledger.

        A cancelled scan is reported but not persisted, so an interrupted
        run never truncates a previously complete ledger.
        """
        policy = MergePolicy.APPEND_ONLY if append_only else MergePolicy.REPLACE
        ledger = Ledger.load_or_empty(self._ledger_path) if append_only else Ledger()
        result = scan(
            self._root,
            skip_paths=ledger.paths(),
            max_depth=self._config.scan.max_depth,
            ledger_name=self._config.ledger_name,
            filesystem=self._filesystem,
            cancel_requested=cancel_requested,
        )
        records = self._filter_internal_records(result.records)
        added = ledger.merge(records, policy)
        counts = Counter(diagnostic.kind.value for diagnostic in result.diagnostics)
        cancelled = counts.get(DiagnosticKind.CANCELLED.value, 0) > 0
        if not cancelled:
            ledger.write(self._ledger_path)
        return ScanReport(
            ledger_path=str(self._ledger_path),
            append_only=append_only,
            entry_count=len(ledger),
            added_count=added,
            persisted=not cancelled,
            diagnostics=result.diagnostics,
            profile=result.profile,
            diagnostic_counts=dict(sorted(counts.items())),
        )

    def restore(self) -> RestoreOutcome:
        """Reapply the ledger's timestamps to the root's files."""
        return restore_timestamps(
            self._root,
            ledger_name=self._config.ledger_name,
            setter=self._setter,
        )

    def _filter_internal_records(self, records: tuple[FileRecord, ...]) -> list[FileRecord]:
        if self._data_dir_prefix is None:
            return list(records)
        filtered: list[FileRecord] = []
        for record in records:
            if record.path == self._data_dir_prefix:
                continue
            if record.path.startswith(f"{self._data_dir_prefix}/"):
                continue
            filtered.append(record)
        return filtered

    def _compute_data_dir_prefix(self) -> str | None:
        data_dir = self._config.data_dir
        if not data_dir.is_relative_to(self._root) or data_dir == self._root:
            return None
        return data_dir.relative_to(self._root).as_posix()
