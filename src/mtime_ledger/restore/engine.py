"""Reapply recorded timestamps to a reconstructed tree."""

from __future__ import annotations

import os
import stat
from pathlib import Path

from mtime_ledger.ledger.codec import DEFAULT_LEDGER_NAME, LedgerLoadError, read_ledger_rows
from mtime_ledger.ledger.models import RestoreOutcome, RestoreWarning
from mtime_ledger.ledger.timestamps import parse_instant, to_ns
from mtime_ledger.restore.timesetter import BirthTimeResult, TimestampSetter
from mtime_ledger.security.paths import PathBlockedError, resolve_ledger_path, validate_root


def restore_timestamps(
    extracted_root: Path | str,
    *,
    ledger_name: str = DEFAULT_LEDGER_NAME,
    setter: TimestampSetter | None = None,
) -> RestoreOutcome:
    """Apply every ledger row under extracted_root, tolerating per-file failures.

    A missing or unreadable ledger raises LedgerLoadError. Rows are applied in
    file order, so a duplicated path ends with its last recorded instant.
    """
    root = validate_root(extracted_root)
    rows = read_ledger_rows(root / ledger_name)
    apply = setter or TimestampSetter()

    if not rows:
        return RestoreOutcome(
            restored_count=0,
            warnings=(
                RestoreWarning(
                    path=ledger_name, message="Ledger has no entries; nothing to restore."
                ),
            ),
            birth_time_supported=apply.birth_time_supported,
        )

    restored = 0
    warnings: list[RestoreWarning] = []
    notes: list[RestoreWarning] = []
    for row in rows:
        try:
            target = resolve_ledger_path(root, row.path)
        except PathBlockedError as error:
            warnings.append(RestoreWarning(path=row.path, message=error.reason))
            continue
        try:
            mode = os.lstat(target).st_mode
        except (FileNotFoundError, NotADirectoryError):
            warnings.append(
                RestoreWarning(path=row.path, message="File not found in extracted tree.")
            )
            continue
        except OSError as error:
            warnings.append(
                RestoreWarning(
                    path=row.path,
                    message=f"Cannot inspect target: {error.strerror or error}",
                )
            )
            continue
        if not stat.S_ISREG(mode):
            warnings.append(
                RestoreWarning(path=row.path, message="Target is not a regular file.")
            )
            continue
        try:
            instant = parse_instant(row.modified_time)
        except ValueError as error:
            warnings.append(RestoreWarning(path=row.path, message=f"Line {row.line}: {error}"))
            continue
        mtime_ns = to_ns(instant)
        try:
            apply.set_times(target, mtime_ns)
        except OSError as error:
            warnings.append(
                RestoreWarning(
                    path=row.path,
                    message=f"Could not set timestamp: {error.strerror or error}",
                )
            )
            continue
        restored += 1
        if apply.set_birth_time(target, mtime_ns) is BirthTimeResult.FAILED:
            notes.append(RestoreWarning(path=row.path, message="Birth time could not be set."))

    return RestoreOutcome(
        restored_count=restored,
        warnings=tuple(warnings),
        notes=tuple(notes),
        birth_time_supported=apply.birth_time_supported,
    )


def find_ledger_root(directory: Path | str, ledger_name: str = DEFAULT_LEDGER_NAME) -> Path:
    """Return directory, or its first subdirectory, that holds the ledger file."""
    base = validate_root(directory)
    if (base / ledger_name).is_file():
        return base
    try:
        candidates = sorted(
            child for child in base.iterdir() if child.is_dir() and not child.is_symlink()
        )
    except OSError as error:
        raise LedgerLoadError(
            base / ledger_name, f"cannot list directory: {error.strerror or error}"
        ) from error
    for child in candidates:
        if (child / ledger_name).is_file():
            return child
    raise LedgerLoadError(
        base / ledger_name, "ledger file not found in directory or its subfolders"
    )
