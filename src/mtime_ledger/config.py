"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from mtime_ledger.ledger.codec import DEFAULT_LEDGER_NAME
from mtime_ledger.traversal.engine import DEFAULT_MAX_DEPTH

CONFIG_FILE_NAME = ".mtime_ledger.toml"
DEFAULT_DATA_DIR_NAME = ".mtime_ledger"
MAX_DEPTH_CAP = 500


@dataclass(slots=True, frozen=True)
class ScanConfig:
    """Traversal settings."""

    max_depth: int


@dataclass(slots=True, frozen=True)
class AuditConfig:
    """Audit log toggles."""

    enabled: bool


@dataclass(slots=True, frozen=True)
class LedgerConfig:
    """Fully merged configuration for one root."""

    root: Path
    data_dir: Path
    ledger_name: str
    scan: ScanConfig
    audit: AuditConfig

    @property
    def ledger_path(self) -> Path:
        return self.root / self.ledger_name


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    ledger_name: str | None = None
    max_depth: int | None = None
    audit_enabled: bool | None = None


def default_config(root: Path) -> LedgerConfig:
    """Build default config for a given root."""
    resolved_root = root.absolute()
    return LedgerConfig(
        root=resolved_root,
        data_dir=resolved_root / DEFAULT_DATA_DIR_NAME,
        ledger_name=DEFAULT_LEDGER_NAME,
        scan=ScanConfig(max_depth=DEFAULT_MAX_DEPTH),
        audit=AuditConfig(enabled=True),
    )


def load_root_config_file(root: Path) -> dict[str, object]:
    """Load optional .mtime_ledger.toml from the root."""
    config_path = root / CONFIG_FILE_NAME
    if not config_path.is_file():
        return {}
    with config_path.open("rb") as handle:
        try:
            payload = tomllib.load(handle)
        except tomllib.TOMLDecodeError as error:
            raise ValueError(f"{CONFIG_FILE_NAME} is not valid TOML: {error}") from error
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def merge_config(
    base: LedgerConfig, root_payload: dict[str, object], overrides: CliOverrides
) -> LedgerConfig:
    """Merge defaults, root config, then CLI/startup overrides."""
    ledger_payload = _get_table(root_payload, "ledger")
    scan_payload = _get_table(root_payload, "scan")
    audit_payload = _get_table(root_payload, "audit")

    ledger_name = base.ledger_name
    if "file_name" in ledger_payload:
        ledger_name = _ledger_file_name(ledger_payload["file_name"], "ledger.file_name")

    max_depth = _optional_positive_int_with_cap(
        scan_payload.get("max_depth"),
        "scan.max_depth",
        base.scan.max_depth,
        MAX_DEPTH_CAP,
    )

    audit_enabled = base.audit.enabled
    if "enabled" in audit_payload:
        raw_enabled = audit_payload["enabled"]
        if not isinstance(raw_enabled, bool):
            raise ValueError("Config field 'audit.enabled' must be a boolean.")
        audit_enabled = raw_enabled

    merged = LedgerConfig(
        root=base.root,
        data_dir=base.data_dir,
        ledger_name=ledger_name,
        scan=ScanConfig(max_depth=max_depth),
        audit=AuditConfig(enabled=audit_enabled),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: LedgerConfig, overrides: CliOverrides) -> LedgerConfig:
    """Apply startup overrides at highest precedence."""
    max_depth = _optional_positive_int_with_cap(
        overrides.max_depth,
        "overrides.max_depth",
        config.scan.max_depth,
        MAX_DEPTH_CAP,
    )
    ledger_name = config.ledger_name
    if overrides.ledger_name is not None:
        ledger_name = _ledger_file_name(overrides.ledger_name, "overrides.ledger_name")
    audit_enabled = (
        overrides.audit_enabled if overrides.audit_enabled is not None else config.audit.enabled
    )
    data_dir = overrides.data_dir or config.data_dir
    return LedgerConfig(
        root=config.root,
        data_dir=data_dir.absolute(),
        ledger_name=ledger_name,
        scan=ScanConfig(max_depth=max_depth),
        audit=AuditConfig(enabled=audit_enabled),
    )


def load_effective_config(root: Path, overrides: CliOverrides | None = None) -> LedgerConfig:
    """Load effective config using merge order defaults -> root config -> overrides."""
    resolved_root = root.absolute()
    base = default_config(resolved_root)
    payload = load_root_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _ledger_file_name(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    if "/" in value or "\\" in value or value in {".", ".."}:
        raise ValueError(f"Config field '{name}' must be a bare file name.")
    return value


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
