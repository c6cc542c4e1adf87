from __future__ import annotations

from pathlib import Path

from mtime_ledger.ledger import DiagnosticKind
from mtime_ledger.traversal import DirectoryEntry, scan

MTIME_NS = 1_705_314_645_123_000_000


class FakeFileSystem:
    """In-memory tree keyed by path relative to the scan root."""

    def __init__(self, root: Path, tree: dict[str, list[tuple[str, str]]]) -> None:
        self.root = root
        self.tree = tree
        self.canonical_overrides: dict[str, str] = {}
        self.list_errors: dict[str, OSError] = {}
        self.stat_errors: dict[str, OSError] = {}
        self.stat_calls: list[str] = []
        self.mtimes: dict[str, int] = {}

    def _relative(self, path: Path) -> str:
        relative = path.relative_to(self.root).as_posix()
        return "" if relative == "." else relative

    def list_directory(self, path: Path) -> list[DirectoryEntry]:
        relative = self._relative(path)
        if relative in self.list_errors:
            raise self.list_errors[relative]
        return [
            DirectoryEntry(name=name, path=path / name, kind=kind)  # type: ignore[arg-type]
            for name, kind in sorted(self.tree.get(relative, []))
        ]

    def modified_ns(self, path: Path) -> int:
        relative = self._relative(path)
        self.stat_calls.append(relative)
        if relative in self.stat_errors:
            raise self.stat_errors[relative]
        return self.mtimes.get(relative, MTIME_NS)

    def canonical(self, path: Path) -> str:
        relative = self._relative(path)
        return self.canonical_overrides.get(relative, f"/canon/{relative}")


def test_directory_aliasing_its_ancestor_is_reported_once(tmp_path: Path) -> None:
    fs = FakeFileSystem(
        tmp_path,
        {
            "": [("a", "directory")],
            "a": [("f.txt", "file"), ("loop", "directory")],
        },
    )
    fs.canonical_overrides["a/loop"] = "/canon/a"

    result = scan(tmp_path, filesystem=fs)

    assert [record.path for record in result.records] == ["a/f.txt"]
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.kind is DiagnosticKind.CYCLE
    assert diagnostic.path == "a/loop"


def test_siblings_sharing_a_canonical_path_are_not_cycles(tmp_path: Path) -> None:
    fs = FakeFileSystem(
        tmp_path,
        {
            "": [("x", "directory"), ("y", "directory")],
            "x": [("one.txt", "file")],
            "y": [("two.txt", "file")],
        },
    )
    fs.canonical_overrides["x"] = "/canon/shared"
    fs.canonical_overrides["y"] = "/canon/shared"

    result = scan(tmp_path, filesystem=fs)

    assert result.diagnostics == ()
    assert [record.path for record in result.records] == ["x/one.txt", "y/two.txt"]


def test_listing_and_stat_failures_become_diagnostics(tmp_path: Path) -> None:
    fs = FakeFileSystem(
        tmp_path,
        {
            "": [("bad.txt", "file"), ("good.txt", "file"), ("locked", "directory")],
        },
    )
    fs.list_errors["locked"] = PermissionError(13, "Permission denied")
    fs.stat_errors["bad.txt"] = OSError(5, "Input/output error")

    result = scan(tmp_path, filesystem=fs)

    assert [record.path for record in result.records] == ["good.txt"]
    kinds = {(d.kind, d.path) for d in result.diagnostics}
    assert kinds == {
        (DiagnosticKind.IO_ERROR, "bad.txt"),
        (DiagnosticKind.PERMISSION_DENIED, "locked"),
    }
    assert all(d.hint for d in result.diagnostics)


def test_symlinks_and_special_entries_are_counted_not_recorded(tmp_path: Path) -> None:
    fs = FakeFileSystem(
        tmp_path,
        {
            "": [("link", "symlink"), ("fifo", "other"), ("shortcut.lnk", "file")],
        },
    )

    result = scan(tmp_path, filesystem=fs)

    assert [record.path for record in result.records] == ["shortcut.lnk"]
    assert result.profile.symlinks_skipped == 1
    assert result.profile.other_entries_skipped == 1
    assert "link" not in fs.stat_calls


def test_cancellation_stops_between_directories(tmp_path: Path) -> None:
    fs = FakeFileSystem(
        tmp_path,
        {
            "": [("a", "directory"), ("b", "directory"), ("top.txt", "file")],
            "a": [("inner.txt", "file")],
            "b": [("inner.txt", "file")],
        },
    )
    answers = iter([False, True])

    result = scan(tmp_path, filesystem=fs, cancel_requested=lambda: next(answers))

    assert [record.path for record in result.records] == ["top.txt"]
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.kind is DiagnosticKind.CANCELLED
    assert "2 pending directories" in diagnostic.message


def test_skipped_paths_are_never_stat_called(tmp_path: Path) -> None:
    fs = FakeFileSystem(tmp_path, {"": [("known.txt", "file"), ("new.txt", "file")]})

    result = scan(tmp_path, skip_paths={"known.txt"}, filesystem=fs)

    assert [record.path for record in result.records] == ["new.txt"]
    assert fs.stat_calls == ["new.txt"]


def test_out_of_range_modification_time_is_a_diagnostic(tmp_path: Path) -> None:
    fs = FakeFileSystem(tmp_path, {"": [("future.txt", "file"), ("normal.txt", "file")]})
    fs.mtimes["future.txt"] = 300_000_000_000 * 10**9

    result = scan(tmp_path, filesystem=fs)

    assert [record.path for record in result.records] == ["normal.txt"]
    assert [(d.kind, d.path) for d in result.diagnostics] == [
        (DiagnosticKind.IO_ERROR, "future.txt")
    ]
    assert "out of range" in result.diagnostics[0].message


def test_undecodable_name_is_reported_not_recorded(tmp_path: Path) -> None:
    fs = FakeFileSystem(tmp_path, {"": [("bad\udcff.txt", "file"), ("good.txt", "file")]})

    result = scan(tmp_path, filesystem=fs)

    assert [record.path for record in result.records] == ["good.txt"]
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].kind is DiagnosticKind.IO_ERROR
    assert "not valid UTF-8" in result.diagnostics[0].message
    assert fs.stat_calls == ["good.txt"]
