"""Audit module - Append-only JSONL logging with hash chain integrity."""

from streamwarden.governance.audit.logger import AuditLogIntegrityError, RuleAuditLogger

__all__ = [
    "RuleAuditLogger",
    "AuditLogIntegrityError",
]
