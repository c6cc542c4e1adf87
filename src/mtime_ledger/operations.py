"""Audited entry points exposed to the command line and embedding callers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict
from pathlib import Path

from mtime_ledger.config import CliOverrides, LedgerConfig, load_effective_config
from mtime_ledger.ledger.codec import DEFAULT_LEDGER_NAME, LedgerLoadError, LedgerWriteError
from mtime_ledger.ledger.models import LedgerStatus, RestoreOutcome, ScanReport
from mtime_ledger.logging import (
    AUDIT_FILE_NAME,
    AuditEvent,
    JsonlAuditLogger,
    new_request_id,
    utc_timestamp,
)
from mtime_ledger.manager import LedgerManager
from mtime_ledger.restore.engine import find_ledger_root
from mtime_ledger.restore.timesetter import TimestampSetter
from mtime_ledger.security.paths import validate_root
from mtime_ledger.traversal.fs import FileSystem


def create_manager(
    root: Path | str,
    overrides: CliOverrides | None = None,
    filesystem: FileSystem | None = None,
    setter: TimestampSetter | None = None,
) -> tuple[LedgerManager, LedgerConfig]:
    """Validate root, merge its config and build a manager for it."""
    resolved = validate_root(root)
    config = load_effective_config(resolved, overrides)
    return LedgerManager(config, filesystem=filesystem, setter=setter), config


def scan_tree(
    root: Path | str,
    *,
    append_only: bool = False,
    overrides: CliOverrides | None = None,
    filesystem: FileSystem | None = None,
    cancel_requested: Callable[[], bool] | None = None,
) -> ScanReport:
    """Scan root, persist its ledger and audit the outcome."""
    manager, config = create_manager(root, overrides, filesystem=filesystem)
    arguments = {
        "root": str(config.root),
        "append_only": append_only,
        "max_depth": config.scan.max_depth,
        "ledger_name": config.ledger_name,
    }
    request_id = new_request_id()
    try:
        report = manager.scan(append_only=append_only, cancel_requested=cancel_requested)
    except LedgerWriteError as error:
        _log(
            config,
            request_id,
            "scan",
            arguments,
            ok=False,
            error_code="LEDGER_WRITE_FAILED",
            extra={"reason": error.reason},
        )
        raise
    _log(
        config,
        request_id,
        "scan",
        arguments,
        ok=True,
        error_code=None,
        extra={
            "entry_count": report.entry_count,
            "added_count": report.added_count,
            "persisted": report.persisted,
            "diagnostics": report.diagnostic_counts,
            "profile": asdict(report.profile) if report.profile is not None else {},
        },
    )
    return report


def restore_tree(
    extracted_root: Path | str,
    *,
    overrides: CliOverrides | None = None,
    setter: TimestampSetter | None = None,
    locate: bool = False,
) -> RestoreOutcome:
    """Restore timestamps under extracted_root and audit the outcome.

    With ``locate`` the ledger may also sit in the first subfolder of
    extracted_root, which is how most archives unpack.
    """
    root = validate_root(extracted_root)
    if locate:
        ledger_name = DEFAULT_LEDGER_NAME
        if overrides is not None and overrides.ledger_name is not None:
            ledger_name = overrides.ledger_name
        root = find_ledger_root(root, ledger_name)
    manager, config = create_manager(root, overrides, setter=setter)
    arguments = {"root": str(config.root), "ledger_name": config.ledger_name}
    request_id = new_request_id()
    try:
        outcome = manager.restore()
    except LedgerLoadError as error:
        _log(
            config,
            request_id,
            "restore",
            arguments,
            ok=False,
            error_code="LEDGER_LOAD_FAILED",
            extra={"reason": error.reason},
        )
        raise
    _log(
        config,
        request_id,
        "restore",
        arguments,
        ok=True,
        error_code=None,
        extra={
            "restored_count": outcome.restored_count,
            "warning_count": len(outcome.warnings),
            "note_count": len(outcome.notes),
            "birth_time_supported": outcome.birth_time_supported,
        },
    )
    return outcome


def ledger_status(root: Path | str, overrides: CliOverrides | None = None) -> LedgerStatus:
    """Report whether root has a readable ledger and how many entries it holds."""
    manager, _ = create_manager(root, overrides)
    return manager.status()


def read_audit_events(
    root: Path | str, overrides: CliOverrides | None = None, limit: int = 50
) -> list[dict[str, object]]:
    """Return the most recent audit events recorded for root."""
    _, config = create_manager(root, overrides)
    return JsonlAuditLogger(config.data_dir / AUDIT_FILE_NAME).read(limit=limit)


def _log(
    config: LedgerConfig,
    request_id: str,
    operation: str,
    arguments: dict[str, object],
    *,
    ok: bool,
    error_code: str | None,
    extra: dict[str, object],
) -> None:
    if not config.audit.enabled:
        return
    metadata: dict[str, object] = {"arguments": dict(sorted(arguments.items()))}
    metadata.update(extra)
    logger = JsonlAuditLogger(config.data_dir / AUDIT_FILE_NAME)
    logger.append(
        AuditEvent(
            timestamp=utc_timestamp(),
            request_id=request_id,
            operation=operation,
            ok=ok,
            error_code=error_code,
            metadata=metadata,
        )
    )
