from __future__ import annotations

import ctypes
import os
from pathlib import Path
from types import SimpleNamespace

import pytest

from mtime_ledger.restore import BirthTimeResult, TimestampSetter, restore_timestamps


class FailingBirthTimeSetter(TimestampSetter):
    def __init__(self) -> None:
        super().__init__(platform="darwin")

    def set_birth_time(self, path: Path, mtime_ns: int) -> BirthTimeResult:
        return BirthTimeResult.FAILED


class BrokenSetter(TimestampSetter):
    def set_times(self, path: Path, mtime_ns: int) -> None:
        raise PermissionError(1, "Operation not permitted")


def test_platform_support_is_reported() -> None:
    assert TimestampSetter(platform="win32").birth_time_supported is True
    assert TimestampSetter(platform="darwin").birth_time_supported is True
    assert TimestampSetter(platform="linux").birth_time_supported is False


def test_unsupported_platform_skips_birth_time(tmp_path: Path) -> None:
    target = tmp_path / "a.txt"
    target.write_text("a", encoding="utf-8")

    setter = TimestampSetter(platform="linux")

    assert setter.set_birth_time(target, 0) is BirthTimeResult.UNSUPPORTED


def test_set_times_sets_access_and_modification(tmp_path: Path) -> None:
    target = tmp_path / "a.txt"
    target.write_text("a", encoding="utf-8")

    TimestampSetter(platform="linux").set_times(target, 1_000_000_000_000)

    stat = os.stat(target)
    assert stat.st_mtime_ns == 1_000_000_000_000
    assert stat.st_atime_ns == 1_000_000_000_000


def test_failed_birth_time_becomes_note_not_warning(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / "metadata.csv").write_text(
        "path,modifiedTime\na.txt,2024-01-15T10:30:45.123Z\n", encoding="utf-8"
    )

    outcome = restore_timestamps(tmp_path, setter=FailingBirthTimeSetter())

    assert outcome.restored_count == 1
    assert outcome.warnings == ()
    assert [note.message for note in outcome.notes] == ["Birth time could not be set."]
    assert outcome.birth_time_supported is True


def test_set_times_failure_is_a_warning(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / "metadata.csv").write_text(
        "path,modifiedTime\na.txt,2024-01-15T10:30:45.123Z\n", encoding="utf-8"
    )

    outcome = restore_timestamps(tmp_path, setter=BrokenSetter(platform="linux"))

    assert outcome.restored_count == 0
    assert [w.message for w in outcome.warnings] == [
        "Could not set timestamp: Operation not permitted"
    ]


def test_windows_birth_time_opens_with_attribute_write_access(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = tmp_path / "readonly.txt"
    target.write_text("r", encoding="utf-8")
    opened: list[tuple[object, ...]] = []

    def create_file(*args: object) -> int:
        opened.append(args)
        return 42

    kernel32 = SimpleNamespace(
        CreateFileW=create_file,
        SetFileTime=lambda *args: 1,
        CloseHandle=lambda handle: 1,
    )
    monkeypatch.setattr(ctypes, "WinDLL", lambda *args, **kwargs: kernel32, raising=False)

    result = TimestampSetter(platform="win32").set_birth_time(target, 1_000_000_000)

    assert result is BirthTimeResult.APPLIED
    assert opened[0][0] == str(target)
    assert opened[0][1] == 0x00000100
