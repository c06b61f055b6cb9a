"""Rules integration - wiring the engine to StreamWarden infrastructure.

- InfrastructureDeps backs the dependency provider with the audit
  logger, the DynamoDB cooldown store and the confirmation queue
- create_action_executor_deps builds it from configuration and policy
- create_action_orchestrator adds CloudWatch metrics on top
- build_action_result_records turns results into storage rows
- run_legacy_migration drives a migration pass over stored rules
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from botocore.exceptions import ClientError
from pydantic import BaseModel, Field

from streamwarden.common.config import Config, get_config
from streamwarden.common.exceptions import CollaboratorError
from streamwarden.governance.audit.logger import RuleAuditLogger
from streamwarden.governance.cooldowns import DynamoDBCooldownStore
from streamwarden.governance.policy import load_enforcement_policy
from streamwarden.governance.review import ConfirmationQueue
from streamwarden.governance.schemas import EnforcementPolicy
from streamwarden.monitoring.metrics import RuleMetricsCollector
from streamwarden.rules.executors.deps import (
    AuditPayload,
    ConfirmationPayload,
    NoopActionExecutorDeps,
)
from streamwarden.rules.executors.orchestrator import ActionOrchestrator
from streamwarden.rules.migration import MigrationError, migrate_rules, needs_migration
from streamwarden.rules.schemas import ActionResult, Rule


logger = logging.getLogger(__name__)


class InfrastructureDeps(NoopActionExecutorDeps):
    """Dependency provider backed by StreamWarden infrastructure.

    Audit entries, cooldowns and confirmations are persisted. Violation
    storage, notifications, trust scores and media-server calls stay
    no-ops here; deployments subclass and override them.
    """

    def __init__(
        self,
        audit_logger: Optional[RuleAuditLogger] = None,
        cooldown_store: Optional[DynamoDBCooldownStore] = None,
        confirmation_queue: Optional[ConfirmationQueue] = None,
    ):
        self.audit_logger = audit_logger
        self.cooldown_store = cooldown_store
        self.confirmation_queue = confirmation_queue

    async def log_audit(self, payload: AuditPayload) -> None:
        if self.audit_logger is None:
            return
        await asyncio.to_thread(
            self.audit_logger.log_rule_audit,
            rule_id=payload.rule_id,
            rule_name=payload.rule_name,
            session_id=payload.session_id,
            server_user_id=payload.server_user_id,
            server_id=payload.server_id,
            message=payload.message,
            details=payload.details,
        )

    async def check_cooldown(self, key: str) -> bool:
        if self.cooldown_store is None:
            return False
        try:
            return await asyncio.to_thread(self.cooldown_store.is_active, key)
        except ClientError as e:
            raise CollaboratorError(str(e), collaborator="cooldown_store") from e

    async def set_cooldown(self, key: str, minutes: int) -> None:
        if self.cooldown_store is None:
            return
        try:
            await asyncio.to_thread(self.cooldown_store.start, key, minutes)
        except ClientError as e:
            raise CollaboratorError(str(e), collaborator="cooldown_store") from e

    async def queue_for_confirmation(self, payload: ConfirmationPayload) -> None:
        if self.confirmation_queue is None:
            logger.warning(
                f"No confirmation queue configured; {payload.action.type} "
                f"for rule {payload.rule_id} was not queued"
            )
            return
        try:
            await asyncio.to_thread(self.confirmation_queue.enqueue, payload)
        except ClientError as e:
            raise CollaboratorError(str(e), collaborator="confirmation_queue") from e


def create_action_executor_deps(
    config: Optional[Config] = None,
    policy: Optional[EnforcementPolicy] = None,
) -> InfrastructureDeps:
    """Build the infrastructure-backed dependency provider.

    Args:
        config: Configuration. Uses the global config if not provided.
        policy: Enforcement policy. Loaded from config.policy_file if not provided.

    Returns:
        InfrastructureDeps with the stores the configuration enables
    """
    config = config or get_config()
    policy = policy or load_enforcement_policy(config.policy_file)

    audit_logger = RuleAuditLogger(
        log_dir=str(config.audit_log_dir),
        policy_version=policy.version,
        log_filename_pattern=policy.audit.log_path_pattern,
        enable_hash_chain=policy.audit.enable_hash_chain,
        hash_algorithm=policy.audit.hash_algorithm,
    )

    cooldown_store = None
    if policy.cooldowns.enabled and config.cooldown_table:
        cooldown_store = DynamoDBCooldownStore(
            table_name=config.cooldown_table,
            region=config.aws_region,
        )

    confirmation_queue = None
    if policy.confirmation.enabled and config.confirmation_table:
        confirmation_queue = ConfirmationQueue(
            table_name=config.confirmation_table,
            region=config.aws_region,
            expiry_hours=policy.confirmation.expiry_hours,
            require_reject_comment=policy.confirmation.require_reject_comment,
        )

    logger.info(
        f"Action executor deps ready: policy={policy.version}, "
        f"cooldowns={'on' if cooldown_store else 'off'}, "
        f"confirmations={'on' if confirmation_queue else 'off'}"
    )
    return InfrastructureDeps(
        audit_logger=audit_logger,
        cooldown_store=cooldown_store,
        confirmation_queue=confirmation_queue,
    )


def create_action_orchestrator(
    config: Optional[Config] = None,
    policy: Optional[EnforcementPolicy] = None,
) -> ActionOrchestrator:
    """Build an orchestrator on infrastructure deps, publishing CloudWatch metrics."""
    config = config or get_config()
    policy = policy or load_enforcement_policy(config.policy_file)

    metrics = RuleMetricsCollector(
        namespace=config.metrics_namespace,
        region=config.aws_region,
    )
    return ActionOrchestrator(
        deps=create_action_executor_deps(config, policy),
        metrics=metrics,
    )


def build_action_result_records(
    rule_id: str,
    results: List[ActionResult],
    violation_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Storage rows for the results of one evaluation, in order."""
    return [result.to_record(rule_id, violation_id) for result in results]


class LegacyMigrationReport(BaseModel):
    """Outcome of a migration pass over stored rules."""
    candidates: int = 0
    migrated_count: int = 0
    errors: List[MigrationError] = Field(default_factory=list)


def run_legacy_migration(
    load_rules: Callable[[], Iterable[Any]],
    save_rule: Callable[[Rule], None],
    audit_logger: Optional[RuleAuditLogger] = None,
    metrics: Optional[Any] = None,
) -> LegacyMigrationReport:
    """Migrate every stored rule still in the legacy shape.

    Args:
        load_rules: Returns stored rules (mappings or objects)
        save_rule: Persists a migrated rule, clearing its legacy fields
        audit_logger: Optional audit logger for the pass summary
        metrics: Optional RuleMetricsCollector

    Returns:
        LegacyMigrationReport; save failures are appended to its errors
    """
    candidates = [rule for rule in load_rules() if needs_migration(rule)]
    report = LegacyMigrationReport(candidates=len(candidates))

    if not candidates:
        logger.info("No legacy rules found requiring migration")
        return report

    logger.info(f"Found {len(candidates)} legacy rules to migrate")
    batch = migrate_rules(candidates)
    report.errors.extend(batch.errors)

    migrated_ids: List[str] = []
    for rule in batch.migrated:
        try:
            save_rule(rule)
        except Exception as e:
            logger.error(f"Failed to save migrated rule {rule.id}: {e}")
            report.errors.append(MigrationError(rule_id=rule.id, rule_name=rule.name, reason=str(e)))
            continue
        migrated_ids.append(rule.id)
        logger.debug(f"Migrated rule {rule.id}")

    report.migrated_count = len(migrated_ids)

    if report.errors:
        logger.warning(f"{len(report.errors)} rules failed to migrate")

    if audit_logger is not None:
        audit_logger.log_migration(
            migrated_ids=migrated_ids,
            errors=[e.model_dump() for e in report.errors],
        )
    if metrics is not None:
        metrics.record_migration(report.migrated_count, len(report.errors))

    return report
