"""Time-setting capability: atime/mtime plus best-effort birth time."""

from __future__ import annotations

import ctypes
import ctypes.util
import os
import sys
from enum import Enum
from pathlib import Path


class BirthTimeResult(str, Enum):
    """Outcome of a secondary birth-time update."""

    APPLIED = "applied"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


# FILETIME counts 100ns ticks since 1601-01-01.
_WINDOWS_EPOCH_OFFSET_TICKS = 116_444_736_000_000_000
_ATTR_BIT_MAP_COUNT = 5
_ATTR_CMN_CRTIME = 0x00000200
# SetFileTime needs only the attribute-write access right.
_FILE_WRITE_ATTRIBUTES = 0x00000100


class _Timespec(ctypes.Structure):
    _fields_ = [("tv_sec", ctypes.c_long), ("tv_nsec", ctypes.c_long)]


class _AttrList(ctypes.Structure):
    _fields_ = [
        ("bitmapcount", ctypes.c_ushort),
        ("reserved", ctypes.c_uint16),
        ("commonattr", ctypes.c_uint32),
        ("volattr", ctypes.c_uint32),
        ("dirattr", ctypes.c_uint32),
        ("fileattr", ctypes.c_uint32),
        ("forkattr", ctypes.c_uint32),
    ]


class TimestampSetter:
    """Applies restored instants to files on the host platform."""

    def __init__(self, platform: str | None = None) -> None:
        self._platform = platform or sys.platform
        self._libc: ctypes.CDLL | None = None

    @property
    def birth_time_supported(self) -> bool:
        """Return True when this platform exposes a settable birth time."""
        return self._platform == "win32" or self._platform == "darwin"

    def set_times(self, path: Path, mtime_ns: int) -> None:
        """Set access and modification time in one call; raises OSError."""
        if os.utime in os.supports_follow_symlinks:
            os.utime(path, ns=(mtime_ns, mtime_ns), follow_symlinks=False)
        else:
            os.utime(path, ns=(mtime_ns, mtime_ns))

    def set_birth_time(self, path: Path, mtime_ns: int) -> BirthTimeResult:
        """Try to set the creation time; never raises."""
        if not self.birth_time_supported:
            return BirthTimeResult.UNSUPPORTED
        try:
            if self._platform == "win32":
                self._set_birth_time_windows(path, mtime_ns)
            else:
                self._set_birth_time_darwin(path, mtime_ns)
        except (OSError, AttributeError):
            return BirthTimeResult.FAILED
        return BirthTimeResult.APPLIED

    def _set_birth_time_windows(self, path: Path, mtime_ns: int) -> None:
        kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]
        share_all = 0x00000001 | 0x00000002 | 0x00000004
        open_existing = 3
        backup_semantics = 0x02000000
        invalid_handle = ctypes.c_void_p(-1).value

        kernel32.CreateFileW.restype = ctypes.c_void_p
        handle = kernel32.CreateFileW(
            str(path),
            _FILE_WRITE_ATTRIBUTES,
            share_all,
            None,
            open_existing,
            backup_semantics,
            None,
        )
        if handle is None or handle == invalid_handle:
            raise ctypes.WinError(ctypes.get_last_error())  # type: ignore[attr-defined]
        try:
            ticks = mtime_ns // 100 + _WINDOWS_EPOCH_OFFSET_TICKS
            created = ctypes.c_ulonglong(ticks)
            ok = kernel32.SetFileTime(
                ctypes.c_void_p(handle), ctypes.byref(created), None, None
            )
            if not ok:
                raise ctypes.WinError(ctypes.get_last_error())  # type: ignore[attr-defined]
        finally:
            kernel32.CloseHandle(ctypes.c_void_p(handle))

    def _set_birth_time_darwin(self, path: Path, mtime_ns: int) -> None:
        libc = self._load_libc()
        attrs = _AttrList(
            bitmapcount=_ATTR_BIT_MAP_COUNT,
            reserved=0,
            commonattr=_ATTR_CMN_CRTIME,
            volattr=0,
            dirattr=0,
            fileattr=0,
            forkattr=0,
        )
        seconds, nanos = divmod(mtime_ns, 1_000_000_000)
        value = _Timespec(tv_sec=seconds, tv_nsec=nanos)
        result = libc.setattrlist(
            os.fsencode(path),
            ctypes.byref(attrs),
            ctypes.byref(value),
            ctypes.sizeof(value),
            ctypes.c_ulong(0),
        )
        if result != 0:
            errno = ctypes.get_errno()
            raise OSError(errno, os.strerror(errno), str(path))

    def _load_libc(self) -> ctypes.CDLL:
        if self._libc is None:
            self._libc = ctypes.CDLL(ctypes.util.find_library("c"), use_errno=True)
        return self._libc
