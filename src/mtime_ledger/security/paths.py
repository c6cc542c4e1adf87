"""Path validation helpers for root-scoped ledger access."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")


class ValidationError(Exception):
    """Raised when an operation root is missing or not a directory."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


class PathBlockedError(Exception):
    """Raised when a ledger path would resolve outside its root."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def validate_root(root: Path | str) -> Path:
    """Return the absolute root path or raise ValidationError."""
    candidate = Path(root).expanduser().absolute()
    if not candidate.exists():
        raise ValidationError(
            reason=f"Root {candidate} does not exist.",
            hint="Pass an existing directory.",
        )
    if not candidate.is_dir():
        raise ValidationError(
            reason=f"Root {candidate} is not a directory.",
            hint="Pass a directory, not a file.",
        )
    return candidate


def normalize_relative_path(candidate: str) -> str:
    """Normalize a forward-slash root-relative path and reject unsafe forms."""
    normalized = candidate
    if not normalized:
        raise PathBlockedError(
            reason="Path is empty.",
            hint="Use a root-relative path such as 'sub/file.txt'.",
        )
    if normalized.startswith("/") or WINDOWS_ABSOLUTE_PATTERN.match(normalized):
        raise PathBlockedError(
            reason="Absolute paths are not allowed in a ledger.",
            hint="Use a path relative to the scanned root.",
        )
    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if not parts:
        raise PathBlockedError(
            reason="Path does not name a file.",
            hint="Use a root-relative path such as 'sub/file.txt'.",
        )
    if any(part == ".." for part in parts):
        raise PathBlockedError(
            reason="Path traversal is blocked.",
            hint="Remove '..' segments and use a root-relative path.",
        )
    return "/".join(parts)


def resolve_ledger_path(root: Path, candidate: str) -> Path:
    """Resolve a ledger path under root without following a final symlink."""
    base = root.absolute()
    relative = normalize_relative_path(candidate)
    target = base.joinpath(*relative.split("/"))
    try:
        parent = target.parent.resolve(strict=False)
    except (OSError, RuntimeError) as error:
        raise PathBlockedError(
            reason="Path cannot be resolved.",
            hint="Check for looping symlinks inside the extracted tree.",
        ) from error
    if not parent.is_relative_to(base.resolve(strict=False)):
        raise PathBlockedError(
            reason="Resolved path escapes the root.",
            hint="Check for symlinked directories inside the extracted tree.",
        )
    return target
