"""Command-line entrypoint for scanning and restoring ledgers."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TextIO

from mtime_ledger.config import CliOverrides
from mtime_ledger.ledger.codec import LedgerLoadError, LedgerWriteError
from mtime_ledger.ledger.models import RestoreOutcome, ScanReport
from mtime_ledger.operations import ledger_status, read_audit_events, restore_tree, scan_tree
from mtime_ledger.security.paths import ValidationError

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2
_RULE = "=" * 80


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for the scan, restore, status and log commands."""
    parser = argparse.ArgumentParser(
        prog="mtime-ledger",
        description="Snapshot file modification times and restore them after extraction.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    scan_parser = commands.add_parser("scan", help="record modification times under a folder")
    scan_parser.add_argument("root", nargs="?", default=".")
    scan_parser.add_argument(
        "--append-only",
        action="store_true",
        help="keep existing entries untouched and only add new files",
    )
    _add_overrides(scan_parser)

    restore_parser = commands.add_parser(
        "restore",
        help="reapply recorded modification times",
        description=(
            "Reapply recorded modification times under ROOT. Unless --data-dir or "
            "--no-audit is given, the audit log is appended to "
            "ROOT/.mtime_ledger/audit.jsonl inside the restored tree."
        ),
    )
    restore_parser.add_argument("root")
    restore_parser.add_argument(
        "--locate",
        action="store_true",
        help="also look for the ledger in the first subfolder of ROOT",
    )
    _add_overrides(restore_parser)

    status_parser = commands.add_parser("status", help="show ledger presence and size")
    status_parser.add_argument("root", nargs="?", default=".")
    _add_overrides(status_parser)

    log_parser = commands.add_parser("log", help="print recent audit events as JSON lines")
    log_parser.add_argument("root", nargs="?", default=".")
    log_parser.add_argument("--limit", type=int, default=20)
    log_parser.add_argument("--data-dir", required=False, default=None)
    return parser


def _add_overrides(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--max-depth", type=int, required=False, default=None)
    parser.add_argument(
        "--data-dir",
        required=False,
        default=None,
        help="directory for the audit log (default: ROOT/.mtime_ledger)",
    )
    parser.add_argument("--ledger-name", required=False, default=None)
    parser.add_argument("--no-audit", action="store_true", help="do not write the audit log")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="exit with status 2 when any path was skipped or not restored",
    )


def _overrides_from_args(args: argparse.Namespace) -> CliOverrides:
    return CliOverrides(
        data_dir=Path(args.data_dir).absolute() if args.data_dir is not None else None,
        ledger_name=args.ledger_name,
        max_depth=args.max_depth,
        audit_enabled=False if args.no_audit else None,
    )


def main(
    argv: list[str] | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Entrypoint for the mtime-ledger command."""
    out = out or sys.stdout
    err = err or sys.stderr
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "log":
            data_dir = Path(args.data_dir).absolute() if args.data_dir is not None else None
            events = read_audit_events(
                args.root, overrides=CliOverrides(data_dir=data_dir), limit=args.limit
            )
            for event in events:
                out.write(json.dumps(event, sort_keys=True))
                out.write("\n")
            return EXIT_OK
        overrides = _overrides_from_args(args)
        if args.command == "scan":
            report = scan_tree(args.root, append_only=args.append_only, overrides=overrides)
            print_scan_report(report, out)
            partial = bool(report.diagnostics)
        elif args.command == "restore":
            outcome = restore_tree(args.root, overrides=overrides, locate=args.locate)
            print_restore_outcome(outcome, out)
            partial = bool(outcome.warnings)
        else:
            status = ledger_status(args.root, overrides=overrides)
            if not status.exists:
                out.write(f"No ledger at {status.ledger_path}\n")
            elif not status.readable:
                out.write(f"Ledger at {status.ledger_path} is unreadable: {status.problem}\n")
            else:
                out.write(f"Ledger at {status.ledger_path}: {status.entry_count} entries\n")
            partial = not status.exists or not status.readable
    except ValidationError as error:
        err.write(f"Error: {error.reason} {error.hint}\n")
        return EXIT_FATAL
    except LedgerLoadError as error:
        err.write(f"Error: cannot load ledger {error.path}: {error.reason}\n")
        return EXIT_FATAL
    except LedgerWriteError as error:
        err.write(f"Error: cannot write ledger {error.path}: {error.reason}\n")
        return EXIT_FATAL
    except ValueError as error:
        err.write(f"Error: {error}\n")
        return EXIT_FATAL
    if partial and args.strict:
        return EXIT_PARTIAL
    return EXIT_OK


def print_scan_report(report: ScanReport, out: TextIO) -> None:
    """Write a human-readable scan summary with numbered diagnostics."""
    if report.diagnostics:
        out.write(f"Issues encountered during scan ({len(report.diagnostics)} paths skipped):\n")
        out.write(f"{_RULE}\n")
        for index, diagnostic in enumerate(report.diagnostics, start=1):
            out.write(
                f"{index}. [{diagnostic.kind.value}] {diagnostic.path}: {diagnostic.message}\n"
            )
        out.write(f"{_RULE}\n")
        out.write("Suggested fixes:\n")
        seen: set[str] = set()
        for diagnostic in report.diagnostics:
            if diagnostic.kind.value in seen:
                continue
            seen.add(diagnostic.kind.value)
            out.write(f"  - {diagnostic.kind.value}: {diagnostic.hint}\n")
        out.write("\n")
    if report.profile is not None:
        out.write(
            f"Scanned {report.profile.directories_scanned} directories, "
            f"recorded {report.profile.files_recorded} files.\n"
        )
    if not report.persisted:
        out.write(f"Scan was cancelled; {report.ledger_path} was left unchanged.\n")
        return
    out.write(f"Wrote {report.entry_count} entries to {report.ledger_path}\n")
    if report.append_only:
        out.write(f"  Added {report.added_count} new files\n")


def print_restore_outcome(outcome: RestoreOutcome, out: TextIO) -> None:
    """Write a human-readable restore summary."""
    for warning in outcome.warnings:
        out.write(f"Warning: {warning.path}: {warning.message}\n")
    for note in outcome.notes:
        out.write(f"Note: {note.path}: {note.message}\n")
    out.write(f"Restored timestamps for {outcome.restored_count} files\n")
    if outcome.warnings:
        out.write(f"  {len(outcome.warnings)} entries could not be restored\n")
    if not outcome.birth_time_supported:
        out.write("  Creation times are not settable on this platform; left unchanged.\n")


if __name__ == "__main__":
    raise SystemExit(main())
