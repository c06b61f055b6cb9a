"""Rules - rule model, action execution engine and legacy migration.

Components:
- Schemas: conditions, actions, rules and action results
- EvaluationContext: read-only input of one evaluation
- ActionOrchestrator: confirmation and cooldown policy around executors
- Migration: legacy type/params rules to conditions/actions rules

Infrastructure wiring lives in streamwarden.rules.integration.
"""

from streamwarden.rules.context import EvaluationContext
from streamwarden.rules.executors import (
    ActionExecutorDeps,
    ActionOrchestrator,
    NoopActionExecutorDeps,
    create_noop_deps,
    resolve_target_sessions,
)
from streamwarden.rules.migration import (
    LegacyRule,
    MigrationBatch,
    MigrationError,
    convert_legacy_rule,
    migrate_rules,
    needs_migration,
)
from streamwarden.rules.schemas import (
    Action,
    ActionResult,
    ActionResultSummary,
    ActionType,
    Condition,
    ConditionField,
    ConditionGroup,
    Operator,
    Rule,
    RuleActions,
    RuleConditions,
    SessionTarget,
    parse_action,
    summarize_results,
)

__all__ = [
    # Engine
    "ActionExecutorDeps",
    "ActionOrchestrator",
    "EvaluationContext",
    "NoopActionExecutorDeps",
    "create_noop_deps",
    "resolve_target_sessions",
    # Migration
    "LegacyRule",
    "MigrationBatch",
    "MigrationError",
    "convert_legacy_rule",
    "migrate_rules",
    "needs_migration",
    # Schemas
    "Action",
    "ActionResult",
    "ActionResultSummary",
    "ActionType",
    "Condition",
    "ConditionField",
    "ConditionGroup",
    "Operator",
    "Rule",
    "RuleActions",
    "RuleConditions",
    "SessionTarget",
    "parse_action",
    "summarize_results",
]
