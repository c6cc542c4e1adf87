"""Restore recorded timestamps onto an extracted tree."""

from .engine import find_ledger_root, restore_timestamps
from .timesetter import BirthTimeResult, TimestampSetter

__all__ = [
    "BirthTimeResult",
    "TimestampSetter",
    "find_ledger_root",
    "restore_timestamps",
]
