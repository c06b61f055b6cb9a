"""Governance - Enforcement Policy, Audit, Cooldowns and Confirmations.

Components:
- load_enforcement_policy: YAML enforcement policy, versioned
- RuleAuditLogger: Immutable JSONL logging of rule enforcement
- DynamoDBCooldownStore: Persisted action suppression windows
- ConfirmationQueue: Operator approval of gated actions
- Schemas: Type definitions for governance data structures
"""

from streamwarden.governance.audit.logger import (
    AuditLogIntegrityError,
    RuleAuditLogger,
)
from streamwarden.governance.cooldowns import DynamoDBCooldownStore
from streamwarden.governance.policy import load_enforcement_policy
from streamwarden.governance.review import (
    ConfirmationDecision,
    ConfirmationQueue,
    ConfirmationStatus,
)
from streamwarden.governance.schemas import (
    AuditEntry,
    AuditEventType,
    EnforcementPolicy,
)

__all__ = [
    # Core components
    "RuleAuditLogger",
    "DynamoDBCooldownStore",
    "ConfirmationQueue",
    "load_enforcement_policy",
    # Exceptions
    "AuditLogIntegrityError",
    # Schemas
    "AuditEntry",
    "AuditEventType",
    "ConfirmationDecision",
    "ConfirmationStatus",
    "EnforcementPolicy",
]
