from __future__ import annotations

from pathlib import Path

import pytest

from mtime_ledger.config import (
    CONFIG_FILE_NAME,
    CliOverrides,
    default_config,
    load_effective_config,
)


def test_defaults_without_config_file(tmp_path: Path) -> None:
    config = load_effective_config(tmp_path)

    assert config == default_config(tmp_path)
    assert config.ledger_path == tmp_path.absolute() / "metadata.csv"
    assert config.data_dir == tmp_path.absolute() / ".mtime_ledger"
    assert config.scan.max_depth == 50
    assert config.audit.enabled is True


def test_merge_order_defaults_then_file_then_overrides(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text(
        "\n".join(
            [
                "[ledger]",
                'file_name = "stamps.csv"',
                "",
                "[scan]",
                "max_depth = 12",
                "",
                "[audit]",
                "enabled = false",
            ]
        ),
        encoding="utf-8",
    )

    from_file = load_effective_config(tmp_path)
    overridden = load_effective_config(
        tmp_path,
        CliOverrides(
            data_dir=tmp_path / "state",
            max_depth=7,
            audit_enabled=True,
        ),
    )

    assert from_file.ledger_name == "stamps.csv"
    assert from_file.scan.max_depth == 12
    assert from_file.audit.enabled is False
    assert overridden.ledger_name == "stamps.csv"
    assert overridden.scan.max_depth == 7
    assert overridden.audit.enabled is True
    assert overridden.data_dir == (tmp_path / "state").absolute()


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("[scan]\nmax_depth = 0\n", "scan.max_depth"),
        ("[scan]\nmax_depth = true\n", "scan.max_depth"),
        ("[scan]\nmax_depth = 501\n", "must be <= 500"),
        ('[ledger]\nfile_name = "sub/x.csv"\n', "bare file name"),
        ('[ledger]\nfile_name = ""\n', "non-empty string"),
        ('[audit]\nenabled = "yes"\n', "audit.enabled"),
        ('scan = "deep"\n', "must be a table"),
        ("[scan\n", "not valid TOML"),
    ],
)
def test_invalid_config_names_the_offending_field(
    tmp_path: Path, content: str, message: str
) -> None:
    (tmp_path / CONFIG_FILE_NAME).write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match=message):
        load_effective_config(tmp_path)


def test_invalid_override_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="overrides.max_depth"):
        load_effective_config(tmp_path, CliOverrides(max_depth=-3))
    with pytest.raises(ValueError, match="overrides.ledger_name"):
        load_effective_config(tmp_path, CliOverrides(ledger_name=".."))
