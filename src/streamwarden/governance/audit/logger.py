"""Audit Logger - Immutable logging of rule enforcement.
"""

import hashlib
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from streamwarden.common.constants import AuditConstants
from streamwarden.common.exceptions import AuditError
from streamwarden.governance.schemas import AuditEntry, AuditEventType


logger = logging.getLogger(__name__)


class AuditLogIntegrityError(AuditError):
    """Raised when audit log integrity check fails."""
    pass


class RuleAuditLogger:
    """Records rule audits, action outcomes and migrations in JSONL format."""

    DEFAULT_LOG_DIR = Path(__file__).parent.parent.parent.parent.parent / "logs" / "audit"

    def __init__(
        self,
        log_dir: Optional[str] = None,
        policy_version: str = "unversioned",
        log_filename_pattern: str = AuditConstants.LOG_FILENAME_PATTERN,
        enable_hash_chain: bool = True,
        hash_algorithm: str = AuditConstants.HASH_ALGORITHM,
    ):
        """Initialize audit logger.

        Args:
            log_dir: Directory for audit logs. Uses default if not provided.
            policy_version: Enforcement policy version stamped on every entry.
            log_filename_pattern: Pattern for log filename. {date} is replaced.
            enable_hash_chain: Whether to enable hash chain integrity.
            hash_algorithm: Hash algorithm for integrity checks.
        """
        self.log_dir = Path(log_dir) if log_dir else self.DEFAULT_LOG_DIR
        self.policy_version = policy_version
        self.log_filename_pattern = log_filename_pattern
        self.enable_hash_chain = enable_hash_chain
        self.hash_algorithm = hash_algorithm

        self._lock = threading.Lock()

        # Cache last hash for chain continuity
        self._last_hash: Optional[str] = None

        self.log_dir.mkdir(parents=True, exist_ok=True)

        if self.enable_hash_chain:
            self._last_hash = self._get_last_hash_from_log()

    def _log_path_for(self, date: Optional[str] = None) -> Path:
        if date is None:
            date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        return self.log_dir / self.log_filename_pattern.replace("{date}", date)

    def _get_last_hash_from_log(self) -> Optional[str]:
        """Read the last hash from the current log file."""
        log_path = self._log_path_for()

        if not log_path.exists():
            return None

        last_hash = None
        try:
            with open(log_path, "r") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        last_hash = json.loads(line).get("entry_hash")
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not resume hash chain from {log_path}: {e}")
            return None

        return last_hash

    def _compute_hash(self, content: str) -> str:
        hasher = hashlib.new(self.hash_algorithm)
        hasher.update(content.encode("utf-8"))
        return hasher.hexdigest()

    def _create_hash_chain_entry(self, entry: AuditEntry) -> AuditEntry:
        """Add hash chain fields to entry."""
        if not self.enable_hash_chain:
            return entry

        entry_dict = entry.model_dump(mode="json")
        entry_dict["previous_hash"] = self._last_hash

        # Hash covers the entry with entry_hash unset
        entry_dict["entry_hash"] = None
        content_to_hash = json.dumps(entry_dict, sort_keys=True, default=str)
        entry_dict["entry_hash"] = self._compute_hash(content_to_hash)

        return AuditEntry.model_validate(entry_dict)

    def log_rule_audit(
        self,
        rule_id: str,
        rule_name: str,
        session_id: str,
        server_user_id: str,
        server_id: str,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        """Log the audit entry of a log_only action."""
        entry = AuditEntry(
            event_type=AuditEventType.RULE_AUDIT,
            rule_id=rule_id,
            rule_name=rule_name,
            session_id=session_id,
            server_user_id=server_user_id,
            server_id=server_id,
            message=message,
            policy_version=self.policy_version,
            metadata=details or {},
        )
        return self._append_entry(entry)

    def log_action_results(
        self,
        rule_id: str,
        records: List[Dict[str, Any]],
        session_id: Optional[str] = None,
        server_user_id: Optional[str] = None,
    ) -> AuditEntry:
        """Log the stored action-result records of one evaluation."""
        entry = AuditEntry(
            event_type=AuditEventType.ACTION_RESULTS,
            rule_id=rule_id,
            session_id=session_id,
            server_user_id=server_user_id,
            policy_version=self.policy_version,
            metadata={
                "result_count": len(records),
                "failed_count": sum(1 for r in records if not r.get("success")),
                "results": records,
            },
        )
        return self._append_entry(entry)

    def log_migration(
        self,
        migrated_ids: List[str],
        errors: List[Dict[str, Any]],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        """Log the outcome of a legacy rule migration pass."""
        entry = AuditEntry(
            event_type=AuditEventType.MIGRATION,
            policy_version=self.policy_version,
            message=f"Migrated {len(migrated_ids)} rules with {len(errors)} errors",
            metadata={
                "migrated_ids": migrated_ids,
                "errors": errors,
                **(metadata or {}),
            },
        )
        return self._append_entry(entry)

    def log_system_event(
        self,
        event_description: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        """Log a system event (startup, shutdown, config change, etc.)"""
        entry = AuditEntry(
            event_type=AuditEventType.SYSTEM_EVENT,
            policy_version=self.policy_version,
            metadata={
                "event_description": event_description,
                **(metadata or {}),
            },
        )
        return self._append_entry(entry)

    def _append_entry(self, entry: AuditEntry) -> AuditEntry:
        """Append entry to log file (thread-safe)."""
        with self._lock:
            entry = self._create_hash_chain_entry(entry)

            # Append only, never overwrite
            with open(self._log_path_for(), "a") as f:
                f.write(entry.to_jsonl() + "\n")

            if self.enable_hash_chain:
                self._last_hash = entry.entry_hash

            return entry

    def get_entries(
        self,
        date: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        rule_id: Optional[str] = None,
        session_id: Optional[str] = None,
        server_user_id: Optional[str] = None,
    ) -> Generator[AuditEntry, None, None]:
        """Retrieve audit entries with optional filtering."""
        log_path = self._log_path_for(date)

        if not log_path.exists():
            return

        with open(log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue

                try:
                    entry = AuditEntry.from_jsonl(line)
                except (json.JSONDecodeError, ValueError):
                    # Skip malformed entries
                    continue

                if event_type and entry.event_type != event_type:
                    continue
                if rule_id and entry.rule_id != rule_id:
                    continue
                if session_id and entry.session_id != session_id:
                    continue
                if server_user_id and entry.server_user_id != server_user_id:
                    continue

                yield entry

    def verify_integrity(self, date: Optional[str] = None) -> bool:
        """Verify hash chain integrity of log file.

        Raises:
            AuditLogIntegrityError: If the chain is broken or an entry was altered
        """
        if not self.enable_hash_chain:
            return True

        log_path = self._log_path_for(date)

        if not log_path.exists():
            return True  # Empty log is valid

        previous_hash = None
        line_number = 0

        with open(log_path, "r") as f:
            for line in f:
                line_number += 1
                line = line.strip()
                if not line:
                    continue

                try:
                    entry_dict = json.loads(line)
                except json.JSONDecodeError as e:
                    raise AuditLogIntegrityError(
                        f"Malformed JSON at line {line_number}: {e}"
                    ) from e

                if entry_dict.get("previous_hash") != previous_hash:
                    raise AuditLogIntegrityError(
                        f"Hash chain broken at line {line_number}. "
                        f"Expected previous_hash={previous_hash}, "
                        f"got {entry_dict.get('previous_hash')}"
                    )

                stored_hash = entry_dict.get("entry_hash")
                entry_dict["entry_hash"] = None
                content_to_hash = json.dumps(entry_dict, sort_keys=True, default=str)

                if self._compute_hash(content_to_hash) != stored_hash:
                    raise AuditLogIntegrityError(
                        f"Entry hash mismatch at line {line_number}. "
                        f"Entry may have been tampered with."
                    )

                previous_hash = stored_hash

        return True
