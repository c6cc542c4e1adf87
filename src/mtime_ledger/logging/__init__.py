"""Structured logging utilities."""

from .audit import (
    AUDIT_FILE_NAME,
    AuditEvent,
    JsonlAuditLogger,
    new_request_id,
    utc_timestamp,
)

__all__ = [
    "AUDIT_FILE_NAME",
    "AuditEvent",
    "JsonlAuditLogger",
    "new_request_id",
    "utc_timestamp",
]
