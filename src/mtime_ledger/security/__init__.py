"""Root validation and path safety primitives."""

from .paths import (
    PathBlockedError,
    ValidationError,
    normalize_relative_path,
    resolve_ledger_path,
    validate_root,
)

__all__ = [
    "PathBlockedError",
    "ValidationError",
    "normalize_relative_path",
    "resolve_ledger_path",
    "validate_root",
]
