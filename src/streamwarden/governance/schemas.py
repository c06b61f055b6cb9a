"""Governance schemas - type definitions for audit and enforcement policy.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of audit events."""
    RULE_AUDIT = "rule_audit"
    ACTION_RESULTS = "action_results"
    MIGRATION = "migration"
    SYSTEM_EVENT = "system_event"


class AuditEntry(BaseModel):
    """A single immutable audit log entry.
    """
    entry_id: str = Field(
        default_factory=lambda: f"aud_{uuid4().hex[:12]}",
        description="Unique entry identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the entry was created"
    )
    event_type: AuditEventType = Field(
        ...,
        description="Type of event being logged"
    )

    # Core identifiers
    rule_id: Optional[str] = Field(
        default=None,
        description="Rule that produced the event"
    )
    rule_name: Optional[str] = Field(
        default=None,
        description="Rule name at the time of the event"
    )
    session_id: Optional[str] = Field(
        default=None,
        description="Associated playback session ID"
    )
    server_user_id: Optional[str] = Field(
        default=None,
        description="Associated server user ID"
    )
    server_id: Optional[str] = Field(
        default=None,
        description="Associated media server ID"
    )

    # Event details
    message: Optional[str] = Field(
        default=None,
        description="Free-text message"
    )

    # Governance
    policy_version: str = Field(
        ...,
        description="Enforcement policy version in effect"
    )

    # Integrity
    previous_hash: Optional[str] = Field(
        default=None,
        description="Hash of previous entry (for chain integrity)"
    )
    entry_hash: Optional[str] = Field(
        default=None,
        description="Hash of this entry"
    )

    # Metadata
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context"
    )

    def to_jsonl(self) -> str:
        """Serialize entry to JSONL format."""
        return json.dumps(self.model_dump(mode="json"), default=str)

    @classmethod
    def from_jsonl(cls, line: str) -> "AuditEntry":
        """Deserialize entry from JSONL format."""
        return cls.model_validate(json.loads(line))


class EnforcementPolicy(BaseModel):
    """Parsed enforcement policy from YAML configuration.

    This is the in-memory representation of enforcement_policy.yaml.
    """

    class Metadata(BaseModel):
        version: str
        last_updated: str
        author: str
        description: str

    class CooldownRules(BaseModel):
        enabled: bool = True

    class ConfirmationRules(BaseModel):
        enabled: bool = True
        expiry_hours: int = Field(default=24, gt=0)
        require_reject_comment: bool = True

    class AuditConfig(BaseModel):
        format: str = "jsonl"
        log_path_pattern: str = "streamwarden_audit_{date}.jsonl"
        append_only: bool = True
        retention_days: int = Field(default=365, gt=0)
        enable_hash_chain: bool = True
        hash_algorithm: str = "sha256"

    metadata: Metadata
    cooldowns: CooldownRules = Field(default_factory=CooldownRules)
    confirmation: ConfirmationRules = Field(default_factory=ConfirmationRules)
    audit: AuditConfig = Field(default_factory=AuditConfig)

    @property
    def version(self) -> str:
        return self.metadata.version
