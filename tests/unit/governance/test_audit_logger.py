"""Unit tests for the Rule Audit Logger.

Tests that audit logs are append-only and maintain hash chain integrity.
"""

import json
import os
import tempfile
import threading
from pathlib import Path

import pytest

from streamwarden.governance.audit.logger import (
    AuditLogIntegrityError,
    RuleAuditLogger,
)
from streamwarden.governance.schemas import AuditEntry, AuditEventType
from streamwarden.rules.schemas import ActionResult


@pytest.fixture
def temp_log_dir():
    """Create a temporary directory for logs."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    import shutil
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def audit_logger(temp_log_dir):
    """Create a RuleAuditLogger with temp directory."""
    return RuleAuditLogger(
        log_dir=temp_log_dir,
        policy_version="1.0.0",
        enable_hash_chain=True,
        hash_algorithm="sha256",
    )


@pytest.fixture
def audit_logger_no_hash(temp_log_dir):
    """Create a RuleAuditLogger without hash chain."""
    return RuleAuditLogger(
        log_dir=temp_log_dir,
        enable_hash_chain=False,
    )


def log_audit(audit_logger, index=0, **overrides):
    fields = dict(
        rule_id=f"rule_{index}",
        rule_name="Too many streams",
        session_id=f"sess_{index}",
        server_user_id=f"user_{index}",
        server_id="srv1",
        message="watch this account",
    )
    fields.update(overrides)
    return audit_logger.log_rule_audit(**fields)


class TestAuditLoggerInit:
    """Test RuleAuditLogger initialization."""

    def test_creates_log_directory(self, temp_log_dir):
        """Test that log directory is created."""
        new_dir = os.path.join(temp_log_dir, "subdir", "logs")
        RuleAuditLogger(log_dir=new_dir)
        assert os.path.exists(new_dir)

    def test_log_file_created_on_first_write(self, audit_logger, temp_log_dir):
        """Test that log file is created on first entry."""
        log_audit(audit_logger)

        log_files = list(Path(temp_log_dir).glob("streamwarden_audit_*.jsonl"))
        assert len(log_files) == 1

    def test_resumes_hash_chain_from_existing_log(self, audit_logger, temp_log_dir):
        """Test that a new logger continues the chain of today's file."""
        last = log_audit(audit_logger)

        resumed = RuleAuditLogger(log_dir=temp_log_dir, policy_version="1.0.0")
        entry = log_audit(resumed, index=1)

        assert entry.previous_hash == last.entry_hash
        assert resumed.verify_integrity() is True


class TestRuleAuditLogging:
    """Test log_only audit entries."""

    def test_log_rule_audit_creates_entry(self, audit_logger):
        """Test that rule audit logging creates an entry."""
        entry = log_audit(audit_logger, details={"sessionKey": "abc"})

        assert entry.entry_id.startswith("aud_")
        assert entry.event_type == AuditEventType.RULE_AUDIT
        assert entry.rule_id == "rule_0"
        assert entry.message == "watch this account"
        assert entry.policy_version == "1.0.0"
        assert entry.metadata == {"sessionKey": "abc"}


class TestActionResultLogging:
    """Test action result logging."""

    def test_log_action_results(self, audit_logger):
        """Test that result records and counts are stored."""
        records = [
            ActionResult.executed("create_violation").to_record("r1"),
            ActionResult.failed("notify", "smtp down").to_record("r1"),
        ]

        entry = audit_logger.log_action_results("r1", records, session_id="s1")

        assert entry.event_type == AuditEventType.ACTION_RESULTS
        assert entry.metadata["result_count"] == 2
        assert entry.metadata["failed_count"] == 1
        assert entry.metadata["results"][1]["errorMessage"] == "smtp down"


class TestMigrationLogging:
    """Test migration logging."""

    def test_log_migration(self, audit_logger):
        """Test the migration summary entry."""
        entry = audit_logger.log_migration(
            migrated_ids=["a", "c"],
            errors=[{"rule_id": "b", "rule_name": "B", "reason": "Unknown rule type: x"}],
        )

        assert entry.event_type == AuditEventType.MIGRATION
        assert entry.message == "Migrated 2 rules with 1 errors"
        assert entry.metadata["migrated_ids"] == ["a", "c"]


class TestSystemEventLogging:
    """Test system event logging."""

    def test_log_system_event(self, audit_logger):
        """Test logging a system event."""
        entry = audit_logger.log_system_event(
            "startup", metadata={"environment": "development"}
        )

        assert entry.event_type == AuditEventType.SYSTEM_EVENT
        assert entry.metadata["event_description"] == "startup"
        assert entry.metadata["environment"] == "development"


class TestAppendOnly:
    """Test append-only behavior."""

    def test_entries_are_appended(self, audit_logger, temp_log_dir):
        """Test that entries are appended, not overwritten."""
        for i in range(3):
            log_audit(audit_logger, index=i)

        log_file = next(Path(temp_log_dir).glob("*.jsonl"))
        with open(log_file) as f:
            lines = [line for line in f if line.strip()]

        assert len(lines) == 3
        assert [json.loads(line)["rule_id"] for line in lines] == ["rule_0", "rule_1", "rule_2"]


class TestHashChainIntegrity:
    """Test hash chain integrity verification."""

    def test_hash_chain_created(self, audit_logger):
        """Test that hash chain is created."""
        entry1 = log_audit(audit_logger, index=1)
        assert entry1.entry_hash is not None
        assert entry1.previous_hash is None  # First entry

        entry2 = log_audit(audit_logger, index=2)
        assert entry2.previous_hash == entry1.entry_hash

    def test_verify_integrity_passes(self, audit_logger):
        """Test that integrity verification passes for valid log."""
        for i in range(5):
            log_audit(audit_logger, index=i)

        assert audit_logger.verify_integrity() is True

    def test_verify_integrity_detects_tampering(self, audit_logger, temp_log_dir):
        """Test that integrity verification detects tampering."""
        for i in range(3):
            log_audit(audit_logger, index=i)

        log_file = next(Path(temp_log_dir).glob("*.jsonl"))
        with open(log_file, "r") as f:
            lines = f.readlines()

        entry_dict = json.loads(lines[1])
        entry_dict["message"] = "nothing to see here"
        lines[1] = json.dumps(entry_dict) + "\n"

        with open(log_file, "w") as f:
            f.writelines(lines)

        with pytest.raises(AuditLogIntegrityError):
            audit_logger.verify_integrity()

    def test_verify_integrity_empty_log(self, audit_logger):
        """Test that a missing log file is valid."""
        assert audit_logger.verify_integrity(date="1999-01-01") is True

    def test_no_hash_chain_when_disabled(self, audit_logger_no_hash):
        """Test that no hash chain is created when disabled."""
        entry = log_audit(audit_logger_no_hash)

        assert entry.entry_hash is None
        assert entry.previous_hash is None


class TestEntryRetrieval:
    """Test audit entry retrieval."""

    def test_get_entries_all(self, audit_logger):
        """Test retrieving all entries."""
        for i in range(3):
            log_audit(audit_logger, index=i)

        assert len(list(audit_logger.get_entries())) == 3

    def test_get_entries_filters(self, audit_logger):
        """Test filtering by event type, rule and user."""
        log_audit(audit_logger, index=1)
        log_audit(audit_logger, index=2)
        audit_logger.log_system_event("startup")

        assert len(list(audit_logger.get_entries(event_type=AuditEventType.SYSTEM_EVENT))) == 1
        assert [e.rule_id for e in audit_logger.get_entries(rule_id="rule_2")] == ["rule_2"]
        assert len(list(audit_logger.get_entries(server_user_id="user_1"))) == 1

    def test_get_entries_skips_malformed_lines(self, audit_logger, temp_log_dir):
        """Test that malformed lines are skipped on read."""
        log_audit(audit_logger)
        log_file = next(Path(temp_log_dir).glob("*.jsonl"))
        with open(log_file, "a") as f:
            f.write("not json\n")

        assert len(list(audit_logger.get_entries())) == 1


class TestJSONLFormat:
    """Test JSONL serialization."""

    def test_round_trip(self):
        """Test that entries survive to_jsonl/from_jsonl."""
        entry = AuditEntry(
            event_type=AuditEventType.RULE_AUDIT,
            rule_id="r1",
            policy_version="1.0.0",
        )
        restored = AuditEntry.from_jsonl(entry.to_jsonl())
        assert restored.entry_id == entry.entry_id
        assert restored.rule_id == "r1"


class TestThreadSafety:
    """Test concurrent writes."""

    def test_concurrent_writes(self, audit_logger):
        """Test that concurrent writes keep the chain intact."""
        threads = [
            threading.Thread(target=log_audit, args=(audit_logger, i))
            for i in range(10)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(list(audit_logger.get_entries())) == 10
        assert audit_logger.verify_integrity() is True
